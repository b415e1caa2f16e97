import logging

from django.db import IntegrityError, transaction
from django.db.models import Max

from users.models import Client
from users.utils import CUSTOMER_NUMBER_PREFIX, MAX_NUMBERING_ATTEMPTS

from .models import Case

logger = logging.getLogger(__name__)

SEQUENCE_DIGITS = 4


def format_case_number(customer_number, sequence):
    """
    Builds a case number from the client's customer number and a sequence.

    MJ0001 + 3 -> MJ00010003
    """
    customer_part = customer_number.replace(CUSTOMER_NUMBER_PREFIX, '', 1)
    return f"{CUSTOMER_NUMBER_PREFIX}{customer_part}{sequence:0{SEQUENCE_DIGITS}d}"


def next_sequence_number(user):
    # Soft-deleted cases keep their numbers, so they are counted too
    last = Case.objects.filter(user=user).aggregate(last=Max('sequence_number'))['last']
    return (last or 0) + 1


def create_case(client, **fields):
    """
    Creates a DRAFT case for a client with the next case number.

    The client row is locked while the sequence is read and the case is
    written. On backends without row locks the unique constraints catch a
    duplicate and the whole allocation is retried.
    """
    for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                locked_client = Client.objects.select_for_update().get(pk=client.pk)
                sequence = next_sequence_number(locked_client.user_id)
                return Case.objects.create(
                    user_id=locked_client.user_id,
                    case_number=format_case_number(locked_client.customer_number, sequence),
                    sequence_number=sequence,
                    status='DRAFT',
                    **fields,
                )
        except IntegrityError:
            if attempt == MAX_NUMBERING_ATTEMPTS:
                raise
            logger.warning(
                "Case number collision for client %s, retrying (attempt %d)",
                client.customer_number, attempt,
            )

import logging

from django.db import IntegrityError, transaction
from django.db.models.functions import Length

from .models import Client

logger = logging.getLogger(__name__)

CUSTOMER_NUMBER_PREFIX = 'MJ'
CUSTOMER_NUMBER_DIGITS = 4
MAX_NUMBERING_ATTEMPTS = 5


def format_customer_number(sequence):
    return f"{CUSTOMER_NUMBER_PREFIX}{sequence:0{CUSTOMER_NUMBER_DIGITS}d}"


def generate_customer_number():
    """
    Returns the next free customer number, e.g. MJ0001, MJ0002, ...

    Numbers grow past four digits once MJ9999 is taken, so the latest one
    is found by length first and then by value.
    """
    latest = (
        Client.objects.filter(customer_number__startswith=CUSTOMER_NUMBER_PREFIX)
        .annotate(number_length=Length('customer_number'))
        .order_by('-number_length', '-customer_number')
        .values_list('customer_number', flat=True)
        .first()
    )

    sequence = 1
    if latest:
        number_part = latest[len(CUSTOMER_NUMBER_PREFIX):]
        if number_part.isdigit():
            sequence = int(number_part) + 1

    return format_customer_number(sequence)


def create_client_profile(user):
    """
    Creates the Client row for a user with a fresh customer number.

    Two sign-ups can compute the same number; the unique constraint rejects
    the second one, which then tries again with the next number.
    """
    for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                return Client.objects.create(user=user, customer_number=generate_customer_number())
        except IntegrityError:
            if attempt == MAX_NUMBERING_ATTEMPTS:
                raise
            logger.warning("Customer number collision for user %s, retrying (attempt %d)", user.pk, attempt)

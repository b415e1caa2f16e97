import logging
from collections import defaultdict

from django.db import transaction
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from cases.decorators import case_access_required
from cases.permissions import accessible_cases
from portalconfig.api import success_response
from users.principal import Principal

from .models import Message, MessageRead
from .serializers import MessageCreateSerializer, MessageFlagSerializer, MessageSerializer

logger = logging.getLogger(__name__)


def mark_messages_read(messages, user_id, already_read):
    """
    Records a read receipt for every message the user did not send and has
    not read yet. Conflicting inserts from a concurrent view are ignored.
    """
    unread = [
        message for message in messages
        if message.sender_id != user_id and message.pk not in already_read
    ]
    if unread:
        MessageRead.objects.bulk_create(
            [MessageRead(message=message, user_id=user_id) for message in unread],
            ignore_conflicts=True,
        )
    return len(unread)


# --- View 1: Case Messaging Thread ---
class CaseMessagesView(APIView):
    permission_classes = [IsAuthenticated]

    @case_access_required("You do not have permission to view this case's messages.")
    def get(self, request, case, principal):
        messages = list(Message.objects.filter(case=case).select_related('sender'))
        read_at = dict(
            MessageRead.objects.filter(message__case=case, user_id=principal.user_id)
            .values_list('message_id', 'read_at')
        )

        # isRead in this response is the state before this view
        marked = mark_messages_read(messages, principal.user_id, read_at)
        if marked:
            logger.debug("Marked %d message(s) on case %s read for user %s", marked, case.pk, principal.user_id)

        data = MessageSerializer(
            messages, many=True, context={'viewer_id': principal.user_id, 'read_at': read_at}
        ).data
        return success_response({
            'case': {'id': case.pk, 'caseNumber': case.case_number, 'title': case.title},
            'messages': data,
        })

    @case_access_required("You do not have permission to send messages on this case.")
    def post(self, request, case, principal):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message = Message.objects.create(
            case=case,
            sender=request.user,
            content=data['content'],
            subject=data.get('subject'),
            is_flagged=data.get('isFlagged', False),
            attachments=data.get('attachments'),
        )

        return success_response(
            {'message': MessageSerializer(message, context={'viewer_id': principal.user_id}).data},
            status_code=status.HTTP_201_CREATED,
        )

    @case_access_required("You do not have permission to flag messages on this case.")
    def patch(self, request, case, principal):
        serializer = MessageFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            message = Message.objects.select_for_update().filter(
                pk=serializer.validated_data['messageId'], case=case
            ).first()
            if message is None:
                raise NotFound("Message not found.")
            message.is_flagged = serializer.validated_data['isFlagged']
            message.save(update_fields=['is_flagged', 'updated_at'])

        return success_response({'message': {'id': message.pk, 'isFlagged': message.is_flagged}})


# --- View 2: Inbox across every case the caller can access ---
class InboxView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        principal = Principal.from_request(request)
        user_id = principal.user_id
        visible_cases = accessible_cases(principal)
        cases = list(visible_cases.order_by('id'))

        # Filter by subquery rather than a literal id list
        case_ids = visible_cases.values('pk')
        messages = (
            Message.objects.filter(case__in=case_ids)
            .select_related('sender')
            .order_by('-created_at', '-id')
        )
        read_at = dict(
            MessageRead.objects.filter(user_id=user_id, message__case__in=case_ids)
            .values_list('message_id', 'read_at')
        )
        context = {'viewer_id': user_id, 'read_at': read_at}

        messages_by_case = defaultdict(list)
        for message in messages:
            messages_by_case[message.case_id].append(message)

        communications = []
        for case in cases:
            case_messages = messages_by_case[case.pk]
            latest = case_messages[0] if case_messages else None
            communications.append({
                'caseId': case.pk,
                'caseNumber': case.case_number,
                'title': case.title,
                'unreadCount': sum(
                    1 for message in case_messages
                    if message.sender_id != user_id and message.pk not in read_at
                ),
                'hasFlaggedMessages': any(message.is_flagged for message in case_messages),
                'latestMessage': MessageSerializer(latest, context=context).data if latest else None,
                'totalMessages': len(case_messages),
                '_latest_at': latest.created_at if latest else None,
            })

        # Unread first, then flagged, then most recent activity
        communications.sort(key=lambda item: item['_latest_at'].timestamp() if item['_latest_at'] else 0, reverse=True)
        communications.sort(key=lambda item: (-item['unreadCount'], not item['hasFlaggedMessages']))
        for item in communications:
            del item['_latest_at']

        return success_response({
            'communications': communications,
            'totalUnread': sum(item['unreadCount'] for item in communications),
        })

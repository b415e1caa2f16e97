from rest_framework import serializers

from users.models import User

from .models import Message


class SenderSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    """
    A message as one user sees it. Pass the viewer's read receipts as
    context={'viewer_id': ..., 'read_at': {message_id: read_at}}.
    """
    sender = SenderSerializer(read_only=True)
    isFlagged = serializers.ReadOnlyField(source='is_flagged')
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    isRead = serializers.SerializerMethodField()
    readAt = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            'id',
            'content',
            'subject',
            'sender',
            'isFlagged',
            'attachments',
            'createdAt',
            'updatedAt',
            'isRead',
            'readAt',
        ]
        read_only_fields = fields

    def get_isRead(self, message):
        # The sender's own messages always count as read
        if message.sender_id == self.context.get('viewer_id'):
            return True
        return message.pk in self.context.get('read_at', {})

    def get_readAt(self, message):
        read_at = self.context.get('read_at', {}).get(message.pk)
        return serializers.DateTimeField().to_representation(read_at) if read_at else None


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=True)
    subject = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    isFlagged = serializers.BooleanField(required=False, default=False)
    attachments = serializers.JSONField(required=False, allow_null=True)

    def validate_content(self, value):
        if not value:
            raise serializers.ValidationError("Message content is required.")
        return value

    def validate_subject(self, value):
        # Blank subjects are stored as null
        if value is None:
            return None
        return value.strip() or None


class MessageFlagSerializer(serializers.Serializer):
    messageId = serializers.IntegerField()
    isFlagged = serializers.BooleanField()

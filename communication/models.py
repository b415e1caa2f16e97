from django.conf import settings
from django.db import models

# We need to import the Case model from the 'cases' app
from cases.models import Case


# Model 1: Message - one entry in a case's thread, visible to everyone with access to the case
class Message(models.Model):
    case = models.ForeignKey(Case, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_messages')

    subject = models.CharField(max_length=255, null=True, blank=True)
    content = models.TextField()
    # The flag is the only thing that changes after a message is sent
    is_flagged = models.BooleanField(default=False)
    attachments = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Message from {self.sender} re: {self.case.case_number}"


# Model 2: MessageRead - a user has seen a message
class MessageRead(models.Model):
    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name='reads')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='message_reads')
    read_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        # Repeated or concurrent views insert-and-ignore against this
        constraints = [
            models.UniqueConstraint(fields=['message', 'user'], name='unique_message_read_per_user'),
        ]

    def __str__(self):
        return f"{self.user} read message {self.message_id}"

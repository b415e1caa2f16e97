from django.contrib import admin

from .models import Message, MessageRead


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('case', 'sender', 'subject', 'is_flagged', 'created_at')
    list_filter = ('is_flagged',)
    search_fields = ('subject', 'content', 'case__case_number')


admin.site.register(MessageRead)

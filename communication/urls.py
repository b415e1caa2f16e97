from django.urls import path

from . import views

app_name = 'communication'

urlpatterns = [
    # Inbox summary across every accessible case
    path('messages', views.InboxView.as_view(), name='inbox'),
    # Message thread for a specific case, e.g. /api/messages/1
    path('messages/<int:case_id>', views.CaseMessagesView.as_view(), name='case-messages'),
]

from django.contrib import admin

from .models import Case


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ('case_number', 'title', 'status', 'user', 'assigned_attorney', 'assigned_internal_staff', 'deleted_at')
    list_filter = ('status', 'trademark_type', 'consultation_route')
    search_fields = ('case_number', 'title', 'applicant')
    readonly_fields = ('case_number', 'sequence_number', 'created_at', 'updated_at')

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Attorney, Client, InternalStaff, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'name', 'role', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('email', 'name')
    ordering = ('-date_joined',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Portal', {'fields': ('name', 'role')}),
    )


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('customer_number', 'user', 'created_at')
    search_fields = ('customer_number', 'user__email', 'user__name')


# Register your models here to make them visible in the admin
admin.site.register(Attorney)
admin.site.register(InternalStaff)

"""
Django admin registrations for the portal models.

Pricing data is edited through the pricing API rather than the Django
admin, so only accounts and the audit trail are registered here.
"""

from django.contrib import admin

from .models import User, AuditEvent


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'user__username')
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')

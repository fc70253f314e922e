from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Profile, User
import logging

logger = logging.getLogger('accounts')

class UserAdmin(BaseUserAdmin):

    def has_change_permission(self, request, obj = None):
        return request.user.is_superuser

    def has_delete_permission(self, request, obj = None):
        return request.user.is_superuser

    def has_view_permission(self, request, obj = None):
        return request.user.is_superuser or request.user.is_staff

    def save_model(self, request, obj, form, change):
        if change:
            logger.info(f'User updated by admin: {request.user.username} - {obj.username}')
        else:
            logger.info(f"User created by admin: {request.user.username}- {obj.username}")
        super().save_model(request, obj, form, change)


class ProfileAdmin(admin.ModelAdmin):
    """Profiles are read-only; they follow the user they belong to."""
    list_display = ('email', 'full_name', 'created_at')
    readonly_fields = ('user', 'email', 'full_name', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj = None):
        return False


admin.site.register(User, UserAdmin)
admin.site.register(Profile, ProfileAdmin)

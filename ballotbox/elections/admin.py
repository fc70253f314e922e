import logging

from django.contrib import admin

from voting.models import Vote

from .models import Candidate

logger = logging.getLogger("elections")


def _optional(value):
    return (value or "").strip() or None


class CandidateAdmin(admin.ModelAdmin):
    list_display = ("name", "party", "created_at")
    search_fields = ("name", "party")

    def has_view_permission(self, request, obj=None):
        return request.user.is_staff or request.user.is_superuser

    # candidates are added or removed, never edited
    def has_change_permission(self, request, obj=None):
        return False

    def get_deleted_objects(self, objs, request):
        deleted_objects, model_count, perms_needed, protected = super().get_deleted_objects(objs, request)
        # votes go with their candidate even though they cannot be deleted on their own
        perms_needed.discard(Vote._meta.verbose_name)
        return deleted_objects, model_count, perms_needed, protected

    def save_model(self, request, obj, form, change):
        # blank optional fields are stored as NULL, never as empty text
        obj.description = _optional(obj.description)
        obj.photo_url = _optional(obj.photo_url)
        logger.info(f"Candidate added by admin : {request.user.username} - {obj.id}")
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        logger.info(f"Candidate deleted by admin: {request.user.username} - {obj.id}")
        super().delete_model(request, obj)


admin.site.register(Candidate, CandidateAdmin)

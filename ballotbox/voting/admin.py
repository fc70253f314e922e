from django.contrib import admin

from .models import Vote


class VoteAdmin(admin.ModelAdmin):
    """Votes are immutable; the admin site only lists them."""

    list_display = ("voter", "candidate", "created_at")
    list_select_related = ("voter", "candidate")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    # votes only leave with their candidate
    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(Vote, VoteAdmin)

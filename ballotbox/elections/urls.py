from django.urls import path

from .views import (
    AdminCandidateDetailView,
    AdminCandidateListView,
    AdminResultsView,
    AdminVotersView,
)

app_name = "elections"

urlpatterns = [
    path("admin/results/", AdminResultsView.as_view(), name="admin-results"),
    path("admin/voters/", AdminVotersView.as_view(), name="admin-voters"),
    path("admin/candidates/", AdminCandidateListView.as_view(), name="admin-candidates"),
    path(
        "admin/candidates/<uuid:candidate_id>/",
        AdminCandidateDetailView.as_view(),
        name="admin-candidate-detail",
    ),
]

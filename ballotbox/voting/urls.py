from django.urls import path

from .views import BallotView, CastVoteView

app_name = "voting"

urlpatterns = [
    path("ballot/", BallotView.as_view(), name="ballot"),
    path("ballot/vote/", CastVoteView.as_view(), name="cast_vote"),
]

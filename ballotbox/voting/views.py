import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import BallotSerializer, VoteCreateSerializer
from .services import VoteOutcome, VoterView, response_status

# __name__ = 'voting.views' automatically
logger = logging.getLogger(__name__)

OUTCOME_STATUS = {
    VoteOutcome.CAST: status.HTTP_201_CREATED,
    VoteOutcome.ALREADY_VOTED: status.HTTP_409_CONFLICT,
    VoteOutcome.BUSY: status.HTTP_409_CONFLICT,
    VoteOutcome.FAILED: status.HTTP_400_BAD_REQUEST,
}


class BallotView(APIView):
    """
    API endpoint for the voter's ballot.

    GET: the candidate roster ordered by name and whether the caller has voted.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        view = VoterView(voter_id=request.user.pk).load()
        return Response(
            {
                "status": response_status(view.failures),
                "data": BallotSerializer(view).data,
                "notifications": view.notifier.as_data(),
            }
        )


class CastVoteView(APIView):
    """
    API endpoint for casting the caller's single vote.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = VoteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        candidate_id = serializer.validated_data["candidate_id"]

        view = VoterView(voter_id=request.user.pk)
        view.refresh_voting_status()
        result = view.vote(candidate_id)

        logger.info(f"Vote attempt by {request.user.username} for {candidate_id}: {result.outcome.value}")

        messages = view.notifier.messages()
        return Response(
            {
                "status": "success" if result.success else "error",
                "outcome": result.outcome.value,
                "message": messages[-1] if messages else result.outcome.value,
                "data": {
                    "candidate_id": result.candidate_id,
                    "has_voted": view.has_voted,
                },
                "notifications": view.notifier.as_data(),
            },
            status=OUTCOME_STATUS[result.outcome],
        )

import logging

from rest_framework import permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from voting.services import NotFound, response_status

from .serializers import (
    CandidateCreateSerializer,
    CandidateSerializer,
    ParticipationSummarySerializer,
    TallyEntrySerializer,
    VoterStatusSerializer,
)
from .services import AdminPanel

logger = logging.getLogger("elections")


def panel_response(panel, data, status_code=status.HTTP_200_OK, message=None):
    body = {
        "status": response_status(panel.failures),
        "data": data,
        "notifications": panel.notifier.as_data(),
    }
    if message:
        body["message"] = message
    return Response(body, status=status_code)


class AdminResultsView(APIView):
    """
    API endpoint for the ranked vote tally.
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        panel = AdminPanel()
        panel.fetch_vote_results()
        return panel_response(
            panel,
            {
                "total_votes": panel.total_votes,
                "results": TallyEntrySerializer(panel.results, many=True).data,
            },
        )


class AdminVotersView(APIView):
    """
    API endpoint listing registered voters and whether each has voted.
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        panel = AdminPanel()
        panel.fetch_voters()
        return panel_response(
            panel,
            {
                "summary": ParticipationSummarySerializer(panel.participation).data,
                "voters": VoterStatusSerializer(panel.voters, many=True).data,
            },
        )


class AdminCandidateListView(APIView):
    """
    GET: the candidate roster, filterable by `party` and `name`.
    POST: add a candidate.
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        panel = AdminPanel()
        panel.fetch_candidates(request.query_params)
        return panel_response(panel, {"candidates": CandidateSerializer(panel.candidates, many=True).data})

    def post(self, request):
        logger.debug(f"Incoming data: {request.data}")
        serializer = CandidateCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        panel = AdminPanel()
        try:
            candidate = panel.add_candidate(**serializer.validated_data)
        except ValueError as e:
            logger.warning(f"Candidate rejected: {e}")
            raise ValidationError({"non_field_errors": [str(e)]})

        if candidate is None:
            return panel_response(panel, None, status.HTTP_400_BAD_REQUEST, "Failed to add candidate")

        logger.info(f"Candidate added by admin: {request.user.username} - {candidate.id}")
        return panel_response(
            panel,
            {
                "candidate": CandidateSerializer(candidate).data,
                "candidates": CandidateSerializer(panel.candidates, many=True).data,
                "results": TallyEntrySerializer(panel.results, many=True).data,
            },
            status.HTTP_201_CREATED,
            "Candidate added successfully",
        )


class AdminCandidateDetailView(APIView):
    """
    DELETE: remove a candidate together with every vote cast for it.
    """

    permission_classes = [permissions.IsAdminUser]

    def delete(self, request, candidate_id):
        panel = AdminPanel()
        if not panel.delete_candidate(candidate_id):
            if isinstance(panel.failures[-1], NotFound):
                status_code = status.HTTP_404_NOT_FOUND
            else:
                status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            return panel_response(panel, None, status_code, "Failed to delete candidate")

        logger.info(f"Candidate deleted by admin: {request.user.username} - {candidate_id}")
        return panel_response(
            panel,
            {
                "candidates": CandidateSerializer(panel.candidates, many=True).data,
                "results": TallyEntrySerializer(panel.results, many=True).data,
            },
            message="Candidate deleted successfully",
        )

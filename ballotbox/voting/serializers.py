from rest_framework import serializers

from elections.serializers import CandidateSerializer


class BallotSerializer(serializers.Serializer):
    """
    Serializer for the voter's ballot: the roster plus the caller's voting status.
    """
    has_voted = serializers.BooleanField(read_only=True)
    can_vote = serializers.SerializerMethodField()
    candidate_count = serializers.SerializerMethodField()
    candidates = CandidateSerializer(many=True, read_only=True)

    def get_can_vote(self, view):
        return view.submission.can_vote

    def get_candidate_count(self, view):
        return len(view.candidates)


class VoteCreateSerializer(serializers.Serializer):
    """
    Serializer for a vote request.

    Only shape is checked here; whether the candidate exists and whether the
    caller may still vote is decided by the vote submission.
    """
    candidate_id = serializers.UUIDField()

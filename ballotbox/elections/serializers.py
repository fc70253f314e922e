import logging

from rest_framework import serializers

logger = logging.getLogger("elections")


class CandidateSerializer(serializers.Serializer):
    """
    Read-only rendering of a candidate row from the ballot backend.
    """

    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    party = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True, allow_null=True)
    photo_url = serializers.CharField(read_only=True, allow_null=True)


class CandidateCreateSerializer(serializers.Serializer):
    """
    Validates the admin's new-candidate form.
    Name and party are required; description and photo_url may be blank or omitted.
    """

    name = serializers.CharField(max_length=255)
    party = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    photo_url = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500, default="")

    def validate(self, data):
        """
        Custom validation for candidate data
        """
        logger.debug(f"Validating candidate: name = {data.get('name')}, party = {data.get('party')}")
        # optional fields travel as text; the backend payload turns blanks into None
        data["description"] = data.get("description") or ""
        data["photo_url"] = data.get("photo_url") or ""
        return data


class TallyEntrySerializer(serializers.Serializer):
    rank = serializers.IntegerField(read_only=True)
    candidate_id = serializers.CharField(read_only=True)
    candidate_name = serializers.CharField(read_only=True)
    candidate_party = serializers.CharField(read_only=True)
    vote_count = serializers.IntegerField(read_only=True)
    percentage = serializers.SerializerMethodField()

    def get_percentage(self, obj):
        return round(obj.percentage, 2)


class VoterStatusSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    full_name = serializers.CharField(read_only=True, allow_null=True)
    display_name = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    has_voted = serializers.BooleanField(read_only=True)


class ParticipationSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField(read_only=True)
    voted = serializers.IntegerField(read_only=True)
    pending = serializers.IntegerField(read_only=True)

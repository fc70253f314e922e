from uuid import uuid4
from django.db import models


class Candidate(models.Model):
    """
    Candidate model - represents a candidate on the ballot.

    Candidates are added and removed by an admin but never edited.
    Deleting a candidate removes every vote cast for it.
    """
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    name = models.CharField(max_length=255)
    party = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    photo_url = models.CharField(max_length=500, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} - {self.party}"

"""
Ballot Backend Module

The single data-access layer for candidates, votes and voter profiles.
Views never touch the ORM directly; they go through BallotBackend and get
plain row objects back. Storage failures come out as BackendError, and a
second vote by the same voter comes out as ConflictError.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from accounts.models import Profile
from elections.filters import CandidateFilter
from elections.models import Candidate

from .models import Vote

logger = logging.getLogger("voting")


class BackendError(Exception):
    """Raised when a read or write against the ballot store fails."""

    pass


class ConflictError(BackendError):
    """Raised when a vote already exists for the voter."""

    pass


class NotFoundError(BackendError):
    """Raised when the row an operation targets does not exist."""

    pass


@dataclass(frozen=True)
class CandidateRow:
    id: str
    name: str
    party: str
    description: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_model(cls, candidate: Candidate) -> "CandidateRow":
        return cls(
            id=str(candidate.pk),
            name=candidate.name,
            party=candidate.party,
            description=candidate.description or None,
            photo_url=candidate.photo_url or None,
        )


@dataclass(frozen=True)
class VoteRow:
    voter_id: str
    candidate_id: str


@dataclass(frozen=True)
class ProfileRow:
    id: str
    email: str
    full_name: Optional[str]
    created_at: datetime


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class CandidateFields:
    """
    Insert payload for a new candidate.

    `description` and `photo_url` are either real text or None; a blank
    form field never reaches the store as an empty string.
    """

    name: str
    party: str
    description: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_form(
        cls,
        name: Optional[str],
        party: Optional[str],
        description: Optional[str] = "",
        photo_url: Optional[str] = "",
    ) -> "CandidateFields":
        """
        Build the payload from raw form input.

        Raises:
            ValueError: If name or party is missing or blank.
        """
        name = (name or "").strip()
        party = (party or "").strip()
        if not name:
            raise ValueError("Candidate name is required")
        if not party:
            raise ValueError("Candidate party is required")
        return cls(
            name=name,
            party=party,
            description=_optional(description),
            photo_url=_optional(photo_url),
        )


class BallotBackend:
    """
    Data-access operations used by the voter and admin views.
    """

    def list_candidates(self, filters: Optional[Dict[str, Any]] = None) -> List[CandidateRow]:
        """Return candidates ordered by name, optionally narrowed by CandidateFilter."""
        try:
            queryset = Candidate.objects.order_by("name")
            if filters:
                queryset = CandidateFilter(filters, queryset=queryset).qs
            return [CandidateRow.from_model(candidate) for candidate in queryset]
        except DatabaseError as exc:
            raise BackendError(f"Could not list candidates: {exc}") from exc

    def insert_vote(self, voter_id, candidate_id) -> VoteRow:
        """
        Record one vote for the voter.

        Raises:
            ConflictError: If the voter already has a vote.
            BackendError: If the candidate does not exist or the store fails.
        """
        try:
            if not Candidate.objects.filter(pk=candidate_id).exists():
                raise BackendError(f"Unknown candidate: {candidate_id}")
            # own savepoint, so a constraint failure leaves the outer transaction usable
            with transaction.atomic():
                vote = Vote.objects.create(voter_id=voter_id, candidate_id=candidate_id)
        except IntegrityError as exc:
            if Vote.objects.filter(voter_id=voter_id).exists():
                raise ConflictError(f"Voter {voter_id} has already voted") from exc
            raise BackendError(f"Could not record vote: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            raise BackendError(f"Invalid vote reference: {exc}") from exc
        except DatabaseError as exc:
            raise BackendError(f"Could not record vote: {exc}") from exc

        logger.info(f"Vote recorded: {vote.id}")
        return VoteRow(voter_id=str(vote.voter_id), candidate_id=str(vote.candidate_id))

    def insert_candidate(self, fields: CandidateFields) -> CandidateRow:
        try:
            candidate = Candidate.objects.create(
                name=fields.name,
                party=fields.party,
                description=fields.description,
                photo_url=fields.photo_url,
            )
        except DatabaseError as exc:
            raise BackendError(f"Could not add candidate: {exc}") from exc
        logger.info(f"Candidate added: {candidate.name} - {candidate.id}")
        return CandidateRow.from_model(candidate)

    def delete_candidate(self, candidate_id) -> None:
        """
        Delete a candidate. Its votes go with it through the cascade on Vote.candidate.

        Raises:
            NotFoundError: If no such candidate exists.
            BackendError: If the store fails.
        """
        try:
            deleted, per_model = Candidate.objects.filter(pk=candidate_id).delete()
        except (ValidationError, ValueError) as exc:
            raise BackendError(f"Invalid candidate id: {exc}") from exc
        except DatabaseError as exc:
            raise BackendError(f"Could not delete candidate: {exc}") from exc
        if not deleted:
            raise NotFoundError(f"Unknown candidate: {candidate_id}")
        logger.info(f"Candidate deleted: {candidate_id} ({per_model})")

    def list_votes(self) -> List[VoteRow]:
        try:
            rows = Vote.objects.values_list("voter_id", "candidate_id")
            return [VoteRow(voter_id=str(voter), candidate_id=str(candidate)) for voter, candidate in rows]
        except DatabaseError as exc:
            raise BackendError(f"Could not list votes: {exc}") from exc

    def list_profiles(self) -> List[ProfileRow]:
        """Return voter profiles, newest registration first."""
        try:
            return [
                ProfileRow(
                    id=str(profile.pk),
                    email=profile.email,
                    full_name=profile.full_name or None,
                    created_at=profile.created_at,
                )
                for profile in Profile.objects.order_by("-created_at")
            ]
        except DatabaseError as exc:
            raise BackendError(f"Could not list profiles: {exc}") from exc

    def has_voted(self, voter_id) -> bool:
        try:
            return Vote.objects.filter(voter_id=voter_id).exists()
        except DatabaseError as exc:
            raise BackendError(f"Could not check voting status: {exc}") from exc

"""
Result and participation derivations.

Pure functions over rows already fetched from the ballot backend. Nothing
here touches the database; callers re-run them on fresh rows after every
mutation.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence


@dataclass
class TallyEntry:
    candidate_id: str
    candidate_name: str
    candidate_party: str
    vote_count: int
    percentage: float = 0.0
    rank: int = 0


@dataclass
class VoterStatus:
    id: str
    email: str
    full_name: Optional[str]
    created_at: datetime
    has_voted: bool

    @property
    def display_name(self) -> str:
        return self.full_name or "No name provided"


@dataclass(frozen=True)
class ParticipationSummary:
    total: int
    voted: int
    pending: int


def total_votes(entries: Iterable[TallyEntry]) -> int:
    return sum(entry.vote_count for entry in entries)


def derive_tally(votes: Iterable, candidates: Sequence) -> List[TallyEntry]:
    """
    Count votes per candidate and rank the candidates by count.

    Every candidate gets an entry, including those with no votes. Ties keep
    the order in which candidates were given. Votes for a candidate that is
    not in `candidates` are ignored.
    """
    counts = Counter(vote.candidate_id for vote in votes)
    entries = [
        TallyEntry(
            candidate_id=candidate.id,
            candidate_name=candidate.name,
            candidate_party=candidate.party,
            vote_count=counts.get(candidate.id, 0),
        )
        for candidate in candidates
    ]
    # list.sort is stable, also with reverse=True
    entries.sort(key=lambda entry: entry.vote_count, reverse=True)

    total = total_votes(entries)
    for rank, entry in enumerate(entries, start=1):
        entry.rank = rank
        entry.percentage = (entry.vote_count / total * 100) if total > 0 else 0.0
    return entries


def derive_participation(profiles: Iterable, votes: Iterable) -> List[VoterStatus]:
    """Label each profile with whether a vote exists for it, keeping profile order."""
    voter_ids = {vote.voter_id for vote in votes}
    return [
        VoterStatus(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            created_at=profile.created_at,
            has_voted=profile.id in voter_ids,
        )
        for profile in profiles
    ]


def participation_summary(voters: Sequence[VoterStatus]) -> ParticipationSummary:
    voted = sum(1 for voter in voters if voter.has_voted)
    return ParticipationSummary(total=len(voters), voted=voted, pending=len(voters) - voted)

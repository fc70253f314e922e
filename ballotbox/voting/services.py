import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .backend import BackendError, BallotBackend, CandidateRow, ConflictError
from .notifications import Notifier

logger = logging.getLogger(__name__)


class BallotError(Exception):
    """Base Exception for ballot operations"""

    pass


class AlreadyVoted(BallotError):
    """Raised when the voter has already cast a vote"""

    pass


class FetchFailure(BallotError):
    """Raised when a read from the ballot backend fails"""

    pass


class MutationFailure(BallotError):
    """Raised when a write to the ballot backend fails"""

    pass


class NotFound(MutationFailure):
    """Raised when a write targets a row that does not exist"""

    pass


def response_status(failures) -> str:
    """
    Collapse a view's failures into the response status.

    Failed reads alone leave the response usable, so they report partial;
    any failed write reports error.
    """
    if not failures:
        return "success"
    if all(isinstance(failure, FetchFailure) for failure in failures):
        return "partial"
    return "error"


class VoteOutcome(enum.Enum):
    CAST = "cast"
    ALREADY_VOTED = "already_voted"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class VoteResult:
    outcome: VoteOutcome
    candidate_id: Optional[str] = None
    error: Optional[BallotError] = None

    @property
    def success(self) -> bool:
        return self.outcome is VoteOutcome.CAST


class VoteSubmission:
    """
    Casts the calling voter's single vote.

    States are idle and submitting(candidate_id). While a submission is in
    flight `voting_for` holds the candidate id and every vote action is
    refused, whichever candidate it targets. The state goes back to idle on
    every exit path.

    `has_voted` is owned by the caller; `on_vote_success` lets the caller
    refresh it after a vote is recorded.
    """

    def __init__(
        self,
        backend: BallotBackend,
        voter_id,
        has_voted: bool = False,
        on_vote_success: Optional[Callable[[], None]] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.backend = backend
        self.voter_id = voter_id
        self.has_voted = has_voted
        self.on_vote_success = on_vote_success
        self.notifier = notifier or Notifier()
        self.voting_for: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.voting_for is not None

    @property
    def can_vote(self) -> bool:
        return not self.has_voted and not self.is_submitting

    def submit(self, candidate_id) -> VoteResult:
        """
        Try to record a vote for `candidate_id`.

        Returns a VoteResult; nothing is raised for backend failures.
        """
        candidate_id = str(candidate_id)

        if self.is_submitting:
            logger.debug(f"Vote for {candidate_id} refused, submission for {self.voting_for} in flight")
            return VoteResult(VoteOutcome.BUSY, candidate_id)

        if self.has_voted:
            self.notifier.error("You have already voted!")
            return VoteResult(
                VoteOutcome.ALREADY_VOTED,
                candidate_id,
                AlreadyVoted(f"Voter {self.voter_id} has already voted"),
            )

        self.voting_for = candidate_id
        try:
            self.backend.insert_vote(self.voter_id, candidate_id)
        except ConflictError as exc:
            # lost a race against another session of the same voter
            logger.info(f"Duplicate vote rejected for voter {self.voter_id}: {exc}")
            self.notifier.error("You have already cast your vote!")
            return VoteResult(VoteOutcome.ALREADY_VOTED, candidate_id, AlreadyVoted(str(exc)))
        except BackendError as exc:
            logger.error(f"Error casting vote: {exc}")
            self.notifier.error("Failed to cast vote")
            return VoteResult(VoteOutcome.FAILED, candidate_id, MutationFailure(str(exc)))
        else:
            self.notifier.success("Vote cast successfully!")
            if self.on_vote_success is not None:
                self.on_vote_success()
            return VoteResult(VoteOutcome.CAST, candidate_id)
        finally:
            self.voting_for = None


class VoterView:
    """
    Snapshot behind the voter's ballot page: the candidate roster, the
    caller's voting status and the vote submission.
    """

    def __init__(self, voter_id, backend: Optional[BallotBackend] = None, notifier: Optional[Notifier] = None):
        self.backend = backend or BallotBackend()
        self.notifier = notifier or Notifier()
        self.voter_id = voter_id
        self.candidates: List[CandidateRow] = []
        self.loading = True
        self.failures: List[BallotError] = []
        self.submission = VoteSubmission(
            self.backend,
            voter_id,
            on_vote_success=self.refresh_voting_status,
            notifier=self.notifier,
        )

    @property
    def has_voted(self) -> bool:
        return self.submission.has_voted

    @property
    def voting_for(self) -> Optional[str]:
        return self.submission.voting_for

    def load(self) -> "VoterView":
        self.fetch_candidates()
        self.refresh_voting_status()
        return self

    def fetch_candidates(self) -> None:
        try:
            self.candidates = self.backend.list_candidates()
        except BackendError as exc:
            logger.error(f"Error fetching candidates: {exc}")
            self.failures.append(FetchFailure(str(exc)))
            self.notifier.error("Failed to load candidates")
        finally:
            self.loading = False

    def refresh_voting_status(self) -> None:
        try:
            self.submission.has_voted = self.backend.has_voted(self.voter_id)
        except BackendError as exc:
            logger.error(f"Error fetching voting status: {exc}")
            self.failures.append(FetchFailure(str(exc)))
            self.notifier.error("Failed to load voting status")

    def vote(self, candidate_id) -> VoteResult:
        return self.submission.submit(candidate_id)

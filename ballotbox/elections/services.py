import logging
from typing import Any, Dict, List, Optional

from voting.backend import BackendError, BallotBackend, CandidateFields, CandidateRow, NotFoundError
from voting.notifications import Notifier
from voting.services import BallotError, FetchFailure, MutationFailure, NotFound
from voting.tally import (
    ParticipationSummary,
    TallyEntry,
    VoterStatus,
    derive_participation,
    derive_tally,
    participation_summary,
    total_votes,
)

logger = logging.getLogger("elections")


def empty_candidate_form() -> Dict[str, str]:
    return {"name": "", "party": "", "description": "", "photo_url": ""}


class AdminPanel:
    """
    Snapshot behind the admin panel: candidates, ranked results and voters.

    Each collection is fetched on its own. A failed fetch leaves that
    collection as it was and never blocks the others.
    """

    def __init__(self, backend: Optional[BallotBackend] = None, notifier: Optional[Notifier] = None):
        self.backend = backend or BallotBackend()
        self.notifier = notifier or Notifier()
        self.candidates: List[CandidateRow] = []
        self.results: List[TallyEntry] = []
        self.voters: List[VoterStatus] = []
        self.loading = True
        self.new_candidate = empty_candidate_form()
        self.failures: List[BallotError] = []

    @property
    def total_votes(self) -> int:
        return total_votes(self.results)

    @property
    def participation(self) -> ParticipationSummary:
        return participation_summary(self.voters)

    def load(self) -> "AdminPanel":
        self.fetch_candidates()
        self.fetch_vote_results()
        self.fetch_voters()
        return self

    def fetch_candidates(self, filters: Optional[Dict[str, Any]] = None) -> None:
        try:
            self.candidates = self.backend.list_candidates(filters)
        except BackendError as exc:
            self._fetch_failed("candidates", exc)
        finally:
            self.loading = False

    def fetch_vote_results(self) -> None:
        try:
            votes = self.backend.list_votes()
            candidates = self.backend.list_candidates()
        except BackendError as exc:
            self._fetch_failed("vote results", exc)
            return
        self.results = derive_tally(votes, candidates)
        logger.debug(f"Tally derived: {len(self.results)} candidates, {self.total_votes} votes")

    def fetch_voters(self) -> None:
        try:
            profiles = self.backend.list_profiles()
            votes = self.backend.list_votes()
        except BackendError as exc:
            self._fetch_failed("voters", exc)
            return
        self.voters = derive_participation(profiles, votes)

    def add_candidate(
        self,
        name: Optional[str] = None,
        party: Optional[str] = None,
        description: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Optional[CandidateRow]:
        """
        Insert the candidate held in `new_candidate`, after applying any
        values passed in.

        Raises:
            ValueError: If name or party is blank. No insert is attempted.
        """
        for key, value in (("name", name), ("party", party), ("description", description), ("photo_url", photo_url)):
            if value is not None:
                self.new_candidate[key] = value

        fields = CandidateFields.from_form(**self.new_candidate)

        try:
            candidate = self.backend.insert_candidate(fields)
        except BackendError as exc:
            logger.error(f"Error adding candidate: {exc}")
            self.failures.append(MutationFailure(str(exc)))
            self.notifier.error("Failed to add candidate")
            return None

        self.notifier.success("Candidate added successfully")
        self.new_candidate = empty_candidate_form()
        self.fetch_candidates()
        self.fetch_vote_results()
        return candidate

    def delete_candidate(self, candidate_id) -> bool:
        try:
            self.backend.delete_candidate(candidate_id)
        except NotFoundError as exc:
            logger.warning(f"Error deleting candidate: {exc}")
            self.failures.append(NotFound(str(exc)))
            self.notifier.error("Failed to delete candidate")
            return False
        except BackendError as exc:
            logger.error(f"Error deleting candidate: {exc}")
            self.failures.append(MutationFailure(str(exc)))
            self.notifier.error("Failed to delete candidate")
            return False

        self.notifier.success("Candidate deleted successfully")
        self.fetch_candidates()
        self.fetch_vote_results()
        return True

    def _fetch_failed(self, what: str, exc: BackendError) -> None:
        logger.error(f"Error fetching {what}: {exc}")
        self.failures.append(FetchFailure(str(exc)))
        self.notifier.error(f"Failed to load {what}")

from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Profile, User
from elections.models import Candidate

from .backend import (
    BackendError,
    BallotBackend,
    CandidateFields,
    CandidateRow,
    ConflictError,
    NotFoundError,
    ProfileRow,
    VoteRow,
)
from .models import Vote
from .services import (
    AlreadyVoted,
    FetchFailure,
    MutationFailure,
    NotFound,
    VoteOutcome,
    VoterView,
    VoteSubmission,
    response_status,
)
from .tally import derive_participation, derive_tally, participation_summary, total_votes


class FakeBackend:
    """In-memory stand-in for BallotBackend that records every mutation."""

    def __init__(self, candidates=None, votes=None, insert_error=None, fetch_error=None):
        self.candidates = list(candidates or [])
        self.votes = list(votes or [])
        self.insert_error = insert_error
        self.fetch_error = fetch_error
        self.insert_calls = []
        self.on_insert = None

    def list_candidates(self, filters=None):
        if self.fetch_error:
            raise self.fetch_error
        return sorted(self.candidates, key=lambda c: c.name)

    def has_voted(self, voter_id):
        return any(vote.voter_id == str(voter_id) for vote in self.votes)

    def insert_vote(self, voter_id, candidate_id):
        self.insert_calls.append((voter_id, candidate_id))
        if self.on_insert is not None:
            self.on_insert()
        if self.insert_error:
            raise self.insert_error
        row = VoteRow(voter_id=str(voter_id), candidate_id=str(candidate_id))
        self.votes.append(row)
        return row


ALICE = CandidateRow(id="a", name="Alice", party="X")
BOB = CandidateRow(id="b", name="Bob", party="Y")


class TallyDerivationTest(SimpleTestCase):
    # a single candidate with no votes gets a zero entry
    def test_no_votes_gives_zero_percentage(self):
        tally = derive_tally([], [ALICE])

        self.assertEqual(len(tally), 1)
        self.assertEqual(tally[0].candidate_id, "a")
        self.assertEqual(tally[0].vote_count, 0)
        self.assertEqual(tally[0].percentage, 0)

    def test_every_entry_is_zero_when_nobody_voted(self):
        tally = derive_tally([], [ALICE, BOB])

        self.assertEqual(total_votes(tally), 0)
        self.assertTrue(all(entry.percentage == 0 for entry in tally))

    # candidates=[A,B], votes=[A,A,B]
    def test_ranked_by_count_with_percentages(self):
        votes = [VoteRow("u1", "a"), VoteRow("u2", "a"), VoteRow("u3", "b")]

        tally = derive_tally(votes, [BOB, ALICE])

        self.assertEqual([entry.candidate_id for entry in tally], ["a", "b"])
        self.assertEqual([entry.vote_count for entry in tally], [2, 1])
        self.assertEqual(round(tally[0].percentage, 1), 66.7)
        self.assertEqual(round(tally[1].percentage, 1), 33.3)
        self.assertEqual([entry.rank for entry in tally], [1, 2])
        self.assertEqual(tally[0].candidate_name, "Alice")
        self.assertEqual(tally[0].candidate_party, "X")

    def test_counts_sum_to_total_and_percentages_to_hundred(self):
        carol = CandidateRow(id="c", name="Carol", party="Z")
        votes = [VoteRow(f"u{i}", cid) for i, cid in enumerate("aabcccbca")]

        tally = derive_tally(votes, [ALICE, BOB, carol])

        self.assertEqual(total_votes(tally), len(votes))
        self.assertAlmostEqual(sum(entry.percentage for entry in tally), 100.0, places=6)

    def test_ties_keep_candidate_order(self):
        votes = [VoteRow("u1", "b"), VoteRow("u2", "a")]

        tally = derive_tally(votes, [ALICE, BOB])

        self.assertEqual([entry.candidate_id for entry in tally], ["a", "b"])

    def test_votes_for_unknown_candidates_are_ignored(self):
        votes = [VoteRow("u1", "a"), VoteRow("u2", "gone")]

        tally = derive_tally(votes, [ALICE])

        self.assertEqual(total_votes(tally), 1)
        self.assertEqual(tally[0].percentage, 100.0)


class ParticipationDerivationTest(SimpleTestCase):
    def setUp(self):
        now = timezone.now()
        self.profiles = [
            ProfileRow(id="u1", email="u1@example.com", full_name="User One", created_at=now),
            ProfileRow(id="u2", email="u2@example.com", full_name=None, created_at=now - timedelta(days=1)),
        ]

    def test_has_voted_follows_vote_records(self):
        voters = derive_participation(self.profiles, [VoteRow("u1", "a")])

        self.assertEqual([voter.id for voter in voters], ["u1", "u2"])
        self.assertTrue(voters[0].has_voted)
        self.assertFalse(voters[1].has_voted)

    def test_summary_counts(self):
        voters = derive_participation(self.profiles, [VoteRow("u1", "a")])

        summary = participation_summary(voters)

        self.assertEqual((summary.total, summary.voted, summary.pending), (2, 1, 1))

    def test_display_name_falls_back_when_name_missing(self):
        voters = derive_participation(self.profiles, [])

        self.assertEqual(voters[0].display_name, "User One")
        self.assertEqual(voters[1].display_name, "No name provided")


class VoteSubmissionTest(SimpleTestCase):
    def setUp(self):
        self.backend = FakeBackend(candidates=[ALICE, BOB])
        self.success_calls = []

    def make_submission(self, has_voted=False):
        return VoteSubmission(
            self.backend,
            "u1",
            has_voted=has_voted,
            on_vote_success=lambda: self.success_calls.append(True),
        )

    def test_successful_vote(self):
        submission = self.make_submission()

        result = submission.submit("a")

        self.assertEqual(result.outcome, VoteOutcome.CAST)
        self.assertIsNone(result.error)
        self.assertEqual(self.backend.insert_calls, [("u1", "a")])
        self.assertEqual(self.success_calls, [True])
        self.assertEqual(submission.notifier.messages(), ["Vote cast successfully!"])
        self.assertIsNone(submission.voting_for)

    # the flag alone must stop the vote, without any backend call
    def test_already_voted_flag_blocks_without_backend_call(self):
        submission = self.make_submission(has_voted=True)

        result = submission.submit("a")

        self.assertEqual(result.outcome, VoteOutcome.ALREADY_VOTED)
        self.assertIsInstance(result.error, AlreadyVoted)
        self.assertEqual(self.backend.insert_calls, [])
        self.assertEqual(self.success_calls, [])
        self.assertEqual(submission.notifier.messages(), ["You have already voted!"])

    def test_conflict_is_reported_as_already_voted(self):
        self.backend.insert_error = ConflictError("duplicate")
        submission = self.make_submission()

        result = submission.submit("a")

        self.assertEqual(result.outcome, VoteOutcome.ALREADY_VOTED)
        self.assertIsInstance(result.error, AlreadyVoted)
        self.assertEqual(submission.notifier.messages(), ["You have already cast your vote!"])
        self.assertEqual(self.success_calls, [])
        self.assertIsNone(submission.voting_for)

    def test_other_failure_is_generic_and_allows_retry(self):
        self.backend.insert_error = BackendError("connection reset")
        submission = self.make_submission()

        result = submission.submit("a")

        self.assertEqual(result.outcome, VoteOutcome.FAILED)
        self.assertIsInstance(result.error, MutationFailure)
        self.assertEqual(submission.notifier.messages(), ["Failed to cast vote"])
        self.assertIsNone(submission.voting_for)
        self.assertTrue(submission.can_vote)

        self.backend.insert_error = None
        self.assertEqual(submission.submit("a").outcome, VoteOutcome.CAST)
        self.assertEqual(len(self.backend.insert_calls), 2)

    # while one submission is in flight every other vote action is refused
    def test_second_submit_while_in_flight_is_refused(self):
        submission = self.make_submission()
        inner_results = []

        def vote_again():
            self.assertEqual(submission.voting_for, "a")
            self.assertFalse(submission.can_vote)
            inner_results.append(submission.submit("b"))

        self.backend.on_insert = vote_again

        result = submission.submit("a")

        self.assertEqual(result.outcome, VoteOutcome.CAST)
        self.assertEqual(inner_results[0].outcome, VoteOutcome.BUSY)
        self.assertEqual(self.backend.insert_calls, [("u1", "a")])

    def test_state_returns_to_idle_on_unexpected_error(self):
        self.backend.insert_error = RuntimeError("boom")
        submission = self.make_submission()

        with self.assertRaises(RuntimeError):
            submission.submit("a")

        self.assertIsNone(submission.voting_for)


class VoterViewTest(SimpleTestCase):
    def test_load_and_vote_flips_to_voted(self):
        backend = FakeBackend(candidates=[BOB, ALICE])
        view = VoterView("u1", backend=backend).load()

        self.assertFalse(view.loading)
        self.assertEqual([c.name for c in view.candidates], ["Alice", "Bob"])
        self.assertFalse(view.has_voted)

        result = view.vote("a")

        self.assertEqual(result.outcome, VoteOutcome.CAST)
        self.assertTrue(view.has_voted)
        self.assertFalse(view.submission.can_vote)
        self.assertEqual(view.vote("b").outcome, VoteOutcome.ALREADY_VOTED)
        self.assertEqual(len(backend.insert_calls), 1)

    def test_failed_roster_leaves_candidates_empty(self):
        backend = FakeBackend(fetch_error=BackendError("down"))
        view = VoterView("u1", backend=backend).load()

        self.assertEqual(view.candidates, [])
        self.assertFalse(view.loading)
        self.assertIsInstance(view.failures[0], FetchFailure)
        self.assertIn("Failed to load candidates", view.notifier.messages())


class ResponseStatusTest(SimpleTestCase):
    def test_no_failures_is_success(self):
        self.assertEqual(response_status([]), "success")

    def test_failed_reads_only_are_partial(self):
        self.assertEqual(response_status([FetchFailure("a"), FetchFailure("b")]), "partial")

    def test_any_failed_write_is_error(self):
        self.assertEqual(response_status([FetchFailure("a"), MutationFailure("b")]), "error")
        self.assertEqual(response_status([NotFound("c")]), "error")


class BallotBackendTest(TestCase):
    def setUp(self):
        self.backend = BallotBackend()
        self.alice = Candidate.objects.create(name="Alice", party="X")
        self.bob = Candidate.objects.create(name="Bob", party="Y")
        self.voter = User.objects.create_user(username="voter", email="voter@example.com", password="pw12345!")

    def test_candidates_are_ordered_by_name(self):
        Candidate.objects.create(name="Aaron", party="Z")

        names = [row.name for row in self.backend.list_candidates()]

        self.assertEqual(names, ["Aaron", "Alice", "Bob"])

    def test_candidates_can_be_filtered_by_party(self):
        rows = self.backend.list_candidates({"party": "y"})

        self.assertEqual([row.name for row in rows], ["Bob"])

    def test_insert_vote_and_list(self):
        row = self.backend.insert_vote(self.voter.pk, self.alice.pk)

        self.assertEqual(row, VoteRow(str(self.voter.pk), str(self.alice.pk)))
        self.assertEqual(self.backend.list_votes(), [row])
        self.assertTrue(self.backend.has_voted(self.voter.pk))

    def test_second_vote_raises_conflict(self):
        self.backend.insert_vote(self.voter.pk, self.alice.pk)

        with self.assertRaises(ConflictError):
            self.backend.insert_vote(self.voter.pk, self.bob.pk)

        self.assertEqual(Vote.objects.count(), 1)

    def test_vote_for_unknown_candidate_is_not_a_conflict(self):
        with self.assertRaises(BackendError) as ctx:
            self.backend.insert_vote(self.voter.pk, "00000000-0000-0000-0000-000000000000")

        self.assertNotIsInstance(ctx.exception, ConflictError)

    def test_blank_optional_fields_are_stored_as_null(self):
        fields = CandidateFields.from_form("Carol", "Z", description="", photo_url="   ")

        row = self.backend.insert_candidate(fields)

        candidate = Candidate.objects.get(pk=row.id)
        self.assertIsNone(candidate.description)
        self.assertIsNone(candidate.photo_url)

    def test_candidate_fields_require_name_and_party(self):
        with self.assertRaises(ValueError):
            CandidateFields.from_form("", "X")
        with self.assertRaises(ValueError):
            CandidateFields.from_form("Carol", "  ")

    # deleting a candidate takes its votes with it
    def test_delete_candidate_cascades_votes(self):
        for i in range(3):
            user = User.objects.create_user(username=f"v{i}", email=f"v{i}@example.com", password="pw12345!")
            self.backend.insert_vote(user.pk, self.alice.pk)
        self.backend.insert_vote(self.voter.pk, self.bob.pk)

        self.backend.delete_candidate(self.alice.pk)

        votes = self.backend.list_votes()
        self.assertFalse(any(vote.candidate_id == str(self.alice.pk) for vote in votes))
        tally = derive_tally(votes, self.backend.list_candidates())
        self.assertEqual([entry.candidate_name for entry in tally], ["Bob"])

    def test_delete_unknown_candidate_raises(self):
        with self.assertRaises(NotFoundError):
            self.backend.delete_candidate("00000000-0000-0000-0000-000000000000")

    def test_profiles_newest_first(self):
        older = User.objects.create_user(username="older", email="older@example.com", password="pw12345!")
        Profile.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=3))

        ids = [row.id for row in self.backend.list_profiles()]

        self.assertEqual(ids, [str(self.voter.pk), str(older.pk)])

    def test_profile_email_follows_account_email(self):
        self.voter.email = "renamed@example.com"
        self.voter.save()

        self.assertEqual([row.email for row in self.backend.list_profiles()], ["renamed@example.com"])


class ConcurrentSubmissionTest(TestCase):
    """Two sessions of the same voter that both believe they have not voted."""

    def test_losing_submission_reports_already_voted(self):
        alice = Candidate.objects.create(name="Alice", party="X")
        bob = Candidate.objects.create(name="Bob", party="Y")
        voter = User.objects.create_user(username="voter", email="voter@example.com", password="pw12345!")
        backend = BallotBackend()

        first = VoteSubmission(backend, voter.pk, has_voted=False)
        second = VoteSubmission(backend, voter.pk, has_voted=False)

        first_result = first.submit(alice.pk)
        second_result = second.submit(bob.pk)

        self.assertEqual(first_result.outcome, VoteOutcome.CAST)
        self.assertEqual(second_result.outcome, VoteOutcome.ALREADY_VOTED)
        self.assertIsInstance(second_result.error, AlreadyVoted)
        self.assertEqual(second.notifier.messages(), ["You have already cast your vote!"])
        self.assertEqual(Vote.objects.filter(voter=voter).count(), 1)


class BallotApiTest(APITestCase):
    def setUp(self):
        self.alice = Candidate.objects.create(name="Alice", party="X", description="Mayor")
        self.bob = Candidate.objects.create(name="Bob", party="Y")
        self.voter = User.objects.create_user(username="voter", email="voter@example.com", password="pw12345!")
        self.client.force_authenticate(self.voter)

    def test_ballot_requires_login(self):
        self.client.force_authenticate(None)

        response = self.client.get(reverse("voting:ballot"))

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_ballot_lists_candidates(self):
        response = self.client.get(reverse("voting:ballot"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual(data["candidate_count"], 2)
        self.assertEqual([c["name"] for c in data["candidates"]], ["Alice", "Bob"])
        self.assertIsNone(data["candidates"][1]["description"])
        self.assertFalse(data["has_voted"])
        self.assertTrue(data["can_vote"])

    def test_cast_vote_then_already_voted(self):
        url = reverse("voting:cast_vote")

        response = self.client.post(url, {"candidate_id": str(self.alice.pk)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["outcome"], "cast")
        self.assertTrue(response.data["data"]["has_voted"])

        response = self.client.post(url, {"candidate_id": str(self.bob.pk)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["outcome"], "already_voted")
        self.assertEqual(response.data["message"], "You have already voted!")
        self.assertEqual(Vote.objects.filter(voter=self.voter).count(), 1)

        ballot = self.client.get(reverse("voting:ballot")).data["data"]
        self.assertTrue(ballot["has_voted"])

    def test_vote_for_unknown_candidate_fails(self):
        response = self.client.post(
            reverse("voting:cast_vote"),
            {"candidate_id": "00000000-0000-0000-0000-000000000000"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["outcome"], "failed")
        self.assertEqual(response.data["message"], "Failed to cast vote")
        self.assertEqual(Vote.objects.count(), 0)

    def test_malformed_candidate_id_is_rejected(self):
        response = self.client.post(reverse("voting:cast_vote"), {"candidate_id": "nope"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("candidate_id", response.data)

    def test_failed_read_reports_partial(self):
        with mock.patch.object(BallotBackend, "list_candidates", side_effect=BackendError("Could not list candidates")):
            response = self.client.get(reverse("voting:ballot"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "partial")
        self.assertEqual(response.data["data"]["candidates"], [])

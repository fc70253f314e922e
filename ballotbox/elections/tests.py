from unittest import mock

from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import User
from voting.backend import BackendError, BallotBackend, CandidateRow, NotFoundError, ProfileRow, VoteRow
from voting.models import Vote
from voting.services import FetchFailure, MutationFailure, NotFound

from .models import Candidate
from .serializers import CandidateCreateSerializer
from .services import AdminPanel, empty_candidate_form


class StubBackend:
    """Backend double whose individual operations can be made to fail."""

    def __init__(self):
        self.candidates = [CandidateRow(id="a", name="Alice", party="X")]
        self.votes = [VoteRow("u1", "a")]
        self.profiles = [ProfileRow(id="u1", email="u1@example.com", full_name=None, created_at=None)]
        self.failing = set()
        self.inserted = []

    def _check(self, name):
        if name in self.failing:
            raise BackendError(f"{name} failed")

    def list_candidates(self, filters=None):
        self._check("list_candidates")
        return list(self.candidates)

    def list_votes(self):
        self._check("list_votes")
        return list(self.votes)

    def list_profiles(self):
        self._check("list_profiles")
        return list(self.profiles)

    def insert_candidate(self, fields):
        self._check("insert_candidate")
        self.inserted.append(fields)
        row = CandidateRow(id=fields.name.lower(), name=fields.name, party=fields.party)
        self.candidates.append(row)
        return row

    def delete_candidate(self, candidate_id):
        self._check("delete_candidate")
        if not any(c.id == candidate_id for c in self.candidates):
            raise NotFoundError(f"Unknown candidate: {candidate_id}")
        self.candidates = [c for c in self.candidates if c.id != candidate_id]
        self.votes = [v for v in self.votes if v.candidate_id != candidate_id]


class AdminPanelTest(SimpleTestCase):
    def setUp(self):
        self.backend = StubBackend()

    def test_load_fills_every_collection(self):
        panel = AdminPanel(backend=self.backend).load()

        self.assertFalse(panel.loading)
        self.assertEqual([c.name for c in panel.candidates], ["Alice"])
        self.assertEqual(panel.results[0].vote_count, 1)
        self.assertEqual(panel.total_votes, 1)
        self.assertTrue(panel.voters[0].has_voted)
        self.assertEqual(panel.failures, [])

    # a failed read only empties its own collection
    def test_partial_failure_keeps_the_rest(self):
        self.backend.failing.add("list_profiles")

        panel = AdminPanel(backend=self.backend).load()

        self.assertEqual(len(panel.candidates), 1)
        self.assertEqual(len(panel.results), 1)
        self.assertEqual(panel.voters, [])
        self.assertIsInstance(panel.failures[0], FetchFailure)
        self.assertEqual(panel.notifier.messages(), ["Failed to load voters"])

    def test_votes_failure_blocks_results_and_voters_only(self):
        self.backend.failing.add("list_votes")

        panel = AdminPanel(backend=self.backend).load()

        self.assertEqual(len(panel.candidates), 1)
        self.assertEqual(panel.results, [])
        self.assertEqual(panel.voters, [])
        self.assertEqual(
            panel.notifier.messages(),
            ["Failed to load vote results", "Failed to load voters"],
        )

    def test_add_candidate_clears_form_and_refreshes(self):
        panel = AdminPanel(backend=self.backend).load()
        panel.new_candidate["name"] = "Carol"

        row = panel.add_candidate(party="Z", description="", photo_url="")

        self.assertEqual(row.name, "Carol")
        self.assertIsNone(self.backend.inserted[0].description)
        self.assertIsNone(self.backend.inserted[0].photo_url)
        self.assertEqual(panel.new_candidate, empty_candidate_form())
        self.assertEqual([c.name for c in panel.candidates], ["Alice", "Carol"])
        self.assertEqual(len(panel.results), 2)
        self.assertIn("Candidate added successfully", panel.notifier.messages())

    def test_add_candidate_rejects_blank_name_before_backend(self):
        panel = AdminPanel(backend=self.backend)

        with self.assertRaises(ValueError):
            panel.add_candidate(name="   ", party="Z")

        self.assertEqual(self.backend.inserted, [])

    def test_add_candidate_failure_keeps_form(self):
        self.backend.failing.add("insert_candidate")
        panel = AdminPanel(backend=self.backend)

        row = panel.add_candidate(name="Carol", party="Z")

        self.assertIsNone(row)
        self.assertEqual(panel.new_candidate["name"], "Carol")
        self.assertIsInstance(panel.failures[0], MutationFailure)
        self.assertEqual(panel.notifier.messages(), ["Failed to add candidate"])

    def test_delete_candidate_refreshes(self):
        panel = AdminPanel(backend=self.backend).load()

        self.assertTrue(panel.delete_candidate("a"))

        self.assertEqual(panel.candidates, [])
        self.assertEqual(panel.results, [])
        self.assertIn("Candidate deleted successfully", panel.notifier.messages())

    def test_delete_candidate_failure(self):
        self.backend.failing.add("delete_candidate")
        panel = AdminPanel(backend=self.backend)

        self.assertFalse(panel.delete_candidate("a"))
        self.assertEqual(panel.notifier.messages(), ["Failed to delete candidate"])
        self.assertIsInstance(panel.failures[0], MutationFailure)
        self.assertNotIsInstance(panel.failures[0], NotFound)

    def test_delete_missing_candidate_is_not_found(self):
        panel = AdminPanel(backend=self.backend)

        self.assertFalse(panel.delete_candidate("zzz"))
        self.assertIsInstance(panel.failures[0], NotFound)
        self.assertEqual(panel.notifier.messages(), ["Failed to delete candidate"])


class CandidateCreateSerializerTest(SimpleTestCase):
    # method that test the serializer with valid candidate data
    def test_valid_candidate_data(self):
        serializer = CandidateCreateSerializer(data={"name": "Alice", "party": "X"})

        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data["description"], "")

    # method to test that name and party are required
    def test_missing_party(self):
        serializer = CandidateCreateSerializer(data={"name": "Alice", "party": " "})

        self.assertFalse(serializer.is_valid())
        self.assertIn("party", serializer.errors)

    def test_null_optional_fields_are_accepted(self):
        serializer = CandidateCreateSerializer(
            data={"name": "Alice", "party": "X", "description": None, "photo_url": None}
        )

        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data["photo_url"], "")


class AdminApiTest(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="admin", email="admin@example.com", password="pw12345!", is_staff=True
        )
        self.alice = Candidate.objects.create(name="Alice", party="X")
        self.bob = Candidate.objects.create(name="Bob", party="Y")
        self.client.force_authenticate(self.admin)

    def add_voters(self, candidate, count, prefix):
        for i in range(count):
            user = User.objects.create_user(
                username=f"{prefix}{i}", email=f"{prefix}{i}@example.com", password="pw12345!"
            )
            Vote.objects.create(voter=user, candidate=candidate)

    def test_non_staff_is_forbidden(self):
        voter = User.objects.create_user(username="voter", email="voter@example.com", password="pw12345!")
        self.client.force_authenticate(voter)

        response = self.client.get(reverse("elections:admin-results"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_results_are_ranked(self):
        self.add_voters(self.bob, 2, "b")
        self.add_voters(self.alice, 1, "a")

        response = self.client.get(reverse("elections:admin-results"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual(data["total_votes"], 3)
        self.assertEqual([r["candidate_name"] for r in data["results"]], ["Bob", "Alice"])
        self.assertEqual(data["results"][0]["percentage"], 66.67)
        self.assertEqual(data["results"][0]["rank"], 1)

    def test_results_with_no_votes(self):
        response = self.client.get(reverse("elections:admin-results"))

        data = response.data["data"]
        self.assertEqual(data["total_votes"], 0)
        self.assertTrue(all(r["percentage"] == 0 for r in data["results"]))

    def test_voters_show_participation(self):
        self.add_voters(self.alice, 1, "a")

        response = self.client.get(reverse("elections:admin-voters"))

        data = response.data["data"]
        # the admin account is a registered voter too
        self.assertEqual(data["summary"], {"total": 2, "voted": 1, "pending": 1})
        flags = {v["email"]: v["has_voted"] for v in data["voters"]}
        self.assertTrue(flags["a0@example.com"])
        self.assertFalse(flags["admin@example.com"])

    def test_candidate_list_filter_by_party(self):
        response = self.client.get(reverse("elections:admin-candidates"), {"party": "X"})

        self.assertEqual([c["name"] for c in response.data["data"]["candidates"]], ["Alice"])

    def test_add_candidate(self):
        response = self.client.post(
            reverse("elections:admin-candidates"),
            {"name": "Carol", "party": "Z", "description": "", "photo_url": ""},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Candidate added successfully")
        carol = Candidate.objects.get(name="Carol")
        self.assertIsNone(carol.description)
        self.assertIsNone(carol.photo_url)
        self.assertEqual(len(response.data["data"]["results"]), 3)

    def test_add_candidate_requires_name(self):
        response = self.client.post(reverse("elections:admin-candidates"), {"party": "Z"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("name", response.data)
        self.assertEqual(Candidate.objects.count(), 2)

    # delete a candidate holding 3 votes
    def test_delete_candidate_removes_its_votes(self):
        self.add_voters(self.alice, 3, "a")
        self.add_voters(self.bob, 1, "b")

        response = self.client.delete(
            reverse("elections:admin-candidate-detail", kwargs={"candidate_id": self.alice.pk})
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Vote.objects.filter(candidate_id=self.alice.pk).exists())
        results = response.data["data"]["results"]
        self.assertEqual([r["candidate_name"] for r in results], ["Bob"])
        self.assertEqual(results[0]["percentage"], 100.0)

    def test_delete_unknown_candidate(self):
        response = self.client.delete(
            reverse(
                "elections:admin-candidate-detail",
                kwargs={"candidate_id": "00000000-0000-0000-0000-000000000000"},
            )
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Failed to delete candidate")

    def test_delete_store_failure_is_server_error(self):
        url = reverse("elections:admin-candidate-detail", kwargs={"candidate_id": self.alice.pk})
        with mock.patch.object(
            BallotBackend, "delete_candidate", side_effect=BackendError("Could not delete candidate: locked")
        ):
            response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["status"], "error")
        self.assertTrue(Candidate.objects.filter(pk=self.alice.pk).exists())

    def test_failed_read_reports_partial(self):
        with mock.patch.object(BallotBackend, "list_votes", side_effect=BackendError("Could not list votes")):
            response = self.client.get(reverse("elections:admin-results"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "partial")
        self.assertEqual(response.data["data"]["results"], [])
        self.assertEqual(response.data["notifications"][0]["message"], "Failed to load vote results")


class CandidateAdminSiteTest(TestCase):
    def setUp(self):
        self.superuser = User.objects.create_superuser(
            username="root", email="root@example.com", password="pw12345!"
        )
        self.client.force_login(self.superuser)
        self.alice = Candidate.objects.create(name="Alice", party="X")
        self.vote = Vote.objects.create(voter=self.superuser, candidate=self.alice)

    def test_votes_cannot_be_deleted_on_their_own(self):
        response = self.client.post(reverse("admin:voting_vote_delete", args=[self.vote.pk]), {"post": "yes"})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Vote.objects.filter(pk=self.vote.pk).exists())

    def test_deleting_a_candidate_takes_its_votes(self):
        response = self.client.post(
            reverse("admin:elections_candidate_delete", args=[self.alice.pk]), {"post": "yes"}
        )

        self.assertEqual(response.status_code, 302)
        self.assertFalse(Candidate.objects.filter(pk=self.alice.pk).exists())
        self.assertFalse(Vote.objects.exists())

    def test_blank_optional_fields_are_stored_as_null(self):
        response = self.client.post(
            reverse("admin:elections_candidate_add"),
            {"name": "Carol", "party": "Z", "description": "", "photo_url": ""},
        )

        self.assertEqual(response.status_code, 302)
        carol = Candidate.objects.get(name="Carol")
        self.assertIsNone(carol.description)
        self.assertIsNone(carol.photo_url)


class CandidateModelTest(TestCase):
    def test_str(self):
        candidate = Candidate.objects.create(name="Alice", party="X")

        self.assertEqual(str(candidate), "Alice - X")

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from .models import Profile, User


class ProfileSignalTest(TestCase):
    # method to test that every new user gets a voter profile
    def test_profile_created_with_user(self):
        user = User.objects.create_user(
            username="jane", email="jane@example.com", password="pw12345!", first_name="Jane", last_name="Doe"
        )

        profile = Profile.objects.get(pk=user.pk)
        self.assertEqual(profile.email, "jane@example.com")
        self.assertEqual(profile.full_name, "Jane Doe")

    def test_profile_without_name_has_null_full_name(self):
        user = User.objects.create_user(username="anon", email="anon@example.com", password="pw12345!")

        self.assertIsNone(user.profile.full_name)

    def test_saving_again_does_not_duplicate_profile(self):
        user = User.objects.create_user(username="jane", email="jane@example.com", password="pw12345!")
        user.email = "new@example.com"
        user.save()

        self.assertEqual(Profile.objects.filter(pk=user.pk).count(), 1)
        self.assertEqual(Profile.objects.get(pk=user.pk).email, "new@example.com")


class RegistrationAndLoginTest(APITestCase):
    def test_register_creates_user_and_profile(self):
        response = self.client.post(
            reverse("accounts:register"),
            {"username": "voter", "password": "pw12345!", "email": "voter@example.com", "full_name": "Vera Voter"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn("password", response.data)
        user = User.objects.get(username="voter")
        self.assertTrue(user.check_password("pw12345!"))
        self.assertEqual(user.profile.full_name, "Vera Voter")

    def test_register_requires_email(self):
        response = self.client.post(
            reverse("accounts:register"),
            {"username": "voter", "password": "pw12345!"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data)

    def test_logged_in_user_cannot_register(self):
        user = User.objects.create_user(username="jane", email="jane@example.com", password="pw12345!")
        self.client.force_authenticate(user)

        response = self.client.post(
            reverse("accounts:register"),
            {"username": "other", "password": "pw12345!", "email": "other@example.com"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_login_returns_token(self):
        User.objects.create_user(username="jane", email="jane@example.com", password="pw12345!")

        response = self.client.post(
            reverse("accounts:api_token_auth"),
            {"username": "jane", "password": "pw12345!"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("token", response.data)
        self.assertFalse(response.data["is_admin"])

    def test_login_with_bad_password(self):
        User.objects.create_user(username="jane", email="jane@example.com", password="pw12345!")

        response = self.client.post(
            reverse("accounts:api_token_auth"),
            {"username": "jane", "password": "wrong"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

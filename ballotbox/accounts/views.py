import logging

from django.utils import timezone
from rest_framework import generics, permissions
from rest_framework.authtoken.models import Token
from rest_framework.authtoken.views import ObtainAuthToken
from rest_framework.response import Response

from .permissions import IsAnonymousUser
from .serializers import UserRegistrationSerializer

logger = logging.getLogger("accounts")


class CustomAuthToken(ObtainAuthToken):
    """
    Token login that also updates the `last_login` timestamp.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        logger.info("Authentication attempt for user: %s", request.data.get("username"))

        serializer = self.serializer_class(
            data=request.data, context={"request": request}
        )

        try:
            # invalid credentials raise ValidationError (HTTP 400)
            serializer.is_valid(raise_exception=True)
        except Exception as e:
            logger.error(
                "Authentication failed for user: %s. Error: %s",
                request.data.get("username"),
                str(e),
            )
            raise

        user = serializer.validated_data["user"]
        token, created = Token.objects.get_or_create(user=user)

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])

        logger.info("User authenticated sucessfully: %s", user.username)
        if created:
            logger.info("New token created for user: %s", user.username)
        else:
            logger.info("Existing token returned for user: %s", user.username)

        return Response(
            {
                "token": token.key,
                "user_id": user.pk,
                "email": user.email,
                "is_admin": user.is_staff,
            }
        )


class UserRegistrationView(generics.CreateAPIView):
    """
    API endpoint for registering a voter.
    """

    serializer_class = UserRegistrationSerializer
    # only callers that are not logged in may register
    permission_classes = [IsAnonymousUser]

    def create(self, request, *args, **kwargs):
        logger.info("User registration attempt: %s", request.data.get("username"))
        try:
            response = super().create(request, *args, **kwargs)
            logger.info(
                "User registered sucessfully -> %s", request.data.get("username")
            )
            return response
        except Exception as e:
            logger.error(
                "User registration failed for %s. Error: %s",
                request.data.get("username"),
                str(e),
            )
            raise

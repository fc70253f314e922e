#serializer module provides functionalities for serializing & deserializing complex data into JSON
from rest_framework import serializers
from .models import Profile, User
import logging

logger = logging.getLogger('accounts')

class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    serializer for creating a voter account.
    """
    password = serializers.CharField(write_only=True, required=True, style={'input_type':'password'}) # 'style={'input_type': 'password'}' helps DRF's browsable API render this as a password input field.
    email = serializers.EmailField(required=True)
    # stored on the voter profile, not on the user
    full_name = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=255)

    class Meta:
        model = User
        fields = ('username', 'password', 'email', 'full_name')

    def create(self, validated_data):
        """
        Create the user; the profile is created by the post_save signal and
        then given the optional full name.
        """
        full_name = validated_data.pop('full_name', '').strip() or None
        user = User.objects.create_user(
            username = validated_data['username'],
            email = validated_data['email'],
            password = validated_data['password'],
        )
        if full_name:
            Profile.objects.filter(pk=user.pk).update(full_name=full_name)
        logger.info(f"New user registered: {user.username}")
        return user

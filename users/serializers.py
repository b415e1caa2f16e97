import re

from rest_framework import serializers

from .models import User

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
# 12+ characters with a lowercase letter, an uppercase letter, a digit and a symbol
PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{12,}$')
# The email doubles as the username, which is capped at 150 characters
EMAIL_MAX_LENGTH = 150


def normalize_email(value):
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise serializers.ValidationError("Enter a valid email address.")
    return email


class UserSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='date_joined', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role', 'createdAt']
        read_only_fields = fields


class SessionUserSerializer(serializers.ModelSerializer):
    """The signed-in user as the front end expects it: role in lowercase."""
    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']
        read_only_fields = fields

    def get_role(self, user):
        return (user.role or User.Role.CLIENT).lower()


class SignUpSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, error_messages={
        'max_length': "Name must be 100 characters or fewer.",
    })
    email = serializers.CharField(max_length=EMAIL_MAX_LENGTH)
    password = serializers.CharField(trim_whitespace=False)
    rememberMe = serializers.BooleanField(required=False, default=False)

    def validate_email(self, value):
        return normalize_email(value)

    def validate_password(self, value):
        if not PASSWORD_PATTERN.match(value):
            raise serializers.ValidationError(
                "Passwords need at least 12 characters including upper and lower case letters, a digit and a symbol."
            )
        return value


class SignInSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)
    rememberMe = serializers.BooleanField(required=False, default=False)

    def validate_email(self, value):
        return normalize_email(value)


# --- Admin staff management ---
class StaffCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.CharField(max_length=EMAIL_MAX_LENGTH)
    password = serializers.CharField(trim_whitespace=False)
    role = serializers.ChoiceField(choices=User.Role.choices, error_messages={
        'invalid_choice': "Invalid role.",
    })

    def validate_email(self, value):
        return normalize_email(value)


class RoleChangeSerializer(serializers.Serializer):
    userId = serializers.IntegerField()
    role = serializers.ChoiceField(choices=User.Role.choices, error_messages={
        'invalid_choice': "Invalid role.",
    })

    def validate_userId(self, value):
        # An admin cannot lock themselves out
        request = self.context.get('request')
        if request is not None and value == request.user.pk:
            raise serializers.ValidationError("You cannot change your own role.")
        return value

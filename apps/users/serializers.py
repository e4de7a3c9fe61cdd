"""
Serializers for the Users app.

All serializers use camelCase field names to match the web client.
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for User objects.
    """
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    avatarUrl = serializers.URLField(source='avatar', read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'username',
            'firstName',
            'lastName',
            'avatarUrl',
            'role',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in group and order payloads."""
    fullName = serializers.SerializerMethodField()
    avatarUrl = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'fullName', 'avatarUrl']
        read_only_fields = fields

    def get_fullName(self, obj):
        return obj.full_name or obj.email

    def get_avatarUrl(self, obj):
        return (obj.avatar or '').strip() or None


class UserRegistrationSerializer(serializers.Serializer):
    """
    Serializer for user registration.
    Accepts camelCase, auto-generates username from email.
    Only customer and vendor accounts can self-register.
    """
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'},
    )
    role = serializers.ChoiceField(
        choices=[User.Role.CUSTOMER, User.Role.VENDOR],
        default=User.Role.CUSTOMER,
    )

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value

    def create(self, validated_data):
        email = validated_data['email']
        # Auto-generate username from email prefix
        base_username = email.split('@')[0][:30]
        username = base_username
        counter = 1
        while User.objects.filter(username=username).exists():
            username = f'{base_username}{counter}'
            counter += 1

        user = User(
            email=email,
            username=username,
            first_name=validated_data['firstName'],
            last_name=validated_data['lastName'],
            role=validated_data['role'],
        )
        user.set_password(validated_data['password'])
        user.save()
        return user


class UserUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating user profile.
    """
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False)
    avatarUrl = serializers.URLField(max_length=500, required=False, allow_null=True)

    def update(self, instance, validated_data):
        field_map = {
            'firstName': 'first_name',
            'lastName': 'last_name',
            'avatarUrl': 'avatar',
        }
        for camel, attr in field_map.items():
            if camel in validated_data:
                setattr(instance, attr, validated_data[camel] or '')
        instance.save()
        return instance


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate_email(self, value):
        return value.lower()

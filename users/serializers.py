from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Profile

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """The logged-in user as the front-end sees it"""

    full_name = serializers.CharField(source='profile.display_name', read_only=True)
    role = serializers.CharField(source='profile.role', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'role']
        read_only_fields = ['id']


class StaffUserSerializer(serializers.ModelSerializer):
    """Admin management of staff accounts"""

    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True, write_only=True)
    role = serializers.ChoiceField(choices=Profile.ROLE_CHOICES, required=False, write_only=True)
    password = serializers.CharField(write_only=True, required=False, min_length=8, style={'input_type': 'password'})

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'role', 'password', 'is_active']
        read_only_fields = ['id']
        extra_kwargs = {'email': {'required': True}}

    def validate_email(self, value):
        value = value.strip().lower()
        clash = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("A user with this email already exists")
        return value

    def validate(self, data):
        if self.instance is None and not data.get('password'):
            raise serializers.ValidationError({'password': 'Password is required'})
        return data

    def _apply_profile(self, user, full_name, role):
        profile = user.profile
        if full_name is not None:
            profile.full_name = full_name
        if role is not None:
            profile.role = role
            if user.is_staff != (role == 'admin'):
                user.is_staff = role == 'admin'
                user.save(update_fields=['is_staff'])
        profile.save()

    def create(self, validated_data):
        full_name = validated_data.pop('full_name', None)
        role = validated_data.pop('role', None)
        password = validated_data.pop('password')

        user = User(username=validated_data['email'], **validated_data)
        user.set_password(password)
        user.save()
        self._apply_profile(user, full_name, role)
        return user

    def update(self, instance, validated_data):
        full_name = validated_data.pop('full_name', None)
        role = validated_data.pop('role', None)
        password = validated_data.pop('password', None)

        if 'email' in validated_data:
            instance.username = validated_data['email']
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if password:
            instance.set_password(password)
        instance.save()
        self._apply_profile(instance, full_name, role)
        return instance

    def to_representation(self, instance):
        data = UserSerializer(instance).data
        data['is_active'] = instance.is_active
        return data


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'}, trim_whitespace=False)

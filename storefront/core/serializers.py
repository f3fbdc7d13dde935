from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, AccessKey, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'date_of_birth',
                  'role', 'promo_code', 'commission', 'is_active', 'is_staff', 'created_at', 'updated_at']
        read_only_fields = ['username', 'is_staff', 'created_at', 'updated_at']


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own account"""

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'phone', 'date_of_birth']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    invite = serializers.BooleanField(write_only=True, required=False, default=False)

    class Meta:
        model = User
        fields = ['email', 'password', 'invite', 'first_name', 'last_name', 'phone',
                  'date_of_birth', 'role', 'is_active']
        extra_kwargs = {
            'first_name': {'required': True, 'allow_blank': False},
            'last_name': {'required': True, 'allow_blank': False},
            # uniqueness is reported with a 409 by the view
            'email': {'validators': []},
        }

    def validate(self, attrs):
        if not attrs.get('invite') and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'Password is required unless inviting the user'})
        if attrs.get('password'):
            validate_password(attrs['password'])
        return attrs

    def create(self, validated_data):
        validated_data.pop('invite', None)
        password = validated_data.pop('password', None) or None
        user = User(username=validated_data['email'], **validated_data)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        if user.role == User.ROLE_ADMIN:
            user.is_staff = True
        user.save()
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name', 'phone', 'date_of_birth']
        extra_kwargs = {
            'first_name': {'required': True, 'allow_blank': False},
            'last_name': {'required': True, 'allow_blank': False},
            'email': {'validators': []},
        }

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('User already exists')
        return value.lower()

    def create(self, validated_data):
        password = validated_data.pop('password')
        role = self.context.get('role', User.ROLE_CUSTOMER)
        user = User(username=validated_data['email'], role=role, is_active=True, **validated_data)
        user.is_staff = role == User.ROLE_ADMIN
        user.set_password(password)
        user.save()
        return user


class AdminRegisterSerializer(RegisterSerializer):
    access_key = serializers.CharField(write_only=True)

    class Meta(RegisterSerializer.Meta):
        fields = RegisterSerializer.Meta.fields + ['access_key']

    def create(self, validated_data):
        validated_data.pop('access_key', None)
        return super().create(validated_data)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField()
    new_password = serializers.CharField(validators=[validate_password])


class PasswordResetSerializer(serializers.Serializer):
    token = serializers.CharField()
    new_password = serializers.CharField(validators=[validate_password])


class SimplePasswordResetSerializer(serializers.Serializer):
    email = serializers.EmailField()
    new_password = serializers.CharField()
    confirm_password = serializers.CharField()

    def validate(self, attrs):
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError({'confirm_password': 'Passwords do not match'})
        validate_password(attrs['new_password'])
        return attrs


class AccessKeySerializer(serializers.ModelSerializer):
    class Meta:
        model = AccessKey
        fields = ['id', 'key', 'is_active', 'created_at']
        read_only_fields = ['created_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']

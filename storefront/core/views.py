import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .colors import STANDARD_COLORS
from .models import User, SiteSetting, AccessKey, AuditLog
from .permissions import IsStoreAdmin
from .serializers import (
    UserSerializer, UserCreateSerializer, RegisterSerializer, AdminRegisterSerializer,
    ProfileUpdateSerializer, ChangePasswordSerializer, PasswordResetSerializer,
    SimplePasswordResetSerializer, AccessKeySerializer, AuditLogSerializer
)
from .tokens import PasswordResetToken, ResetTokenError, password_fingerprint, read_reset_token
from .utils import (
    create_audit_log, access_key_configured, verify_access_key,
    is_strong_access_key, hash_access_key
)

logger = logging.getLogger(__name__)

API_VERSION = '2.0.0'


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    default_error_messages = {
        'no_active_account': 'Invalid credentials',
    }

    def validate(self, attrs):
        # Deactivated accounts get their own message instead of the generic one
        email = attrs.get(self.username_field)
        candidate = User.objects.filter(email__iexact=email).first() if email else None
        if candidate and not candidate.is_active and candidate.check_password(attrs.get('password')):
            raise AuthenticationFailed('Account is deactivated')

        data = super().validate(attrs)
        return {
            'message': 'Login successful',
            'user': UserSerializer(self.user).data,
            'token': data['access'],
            'access': data['access'],
            'refresh': data['refresh'],
        }

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def build_auth_payload(user, message):
    """User data plus a fresh token pair"""
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {
        'message': message,
        'user': UserSerializer(user).data,
        'token': str(token.access_token),
        'access': str(token.access_token),
        'refresh': str(token),
    }


# Root endpoints
@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API information"""
    return Response({
        'message': 'Storefront API',
        'version': API_VERSION,
        'endpoints': {
            'auth': '/api/auth/',
            'products': '/api/products/',
            'categories': '/api/categories/',
            'collections': '/api/collections/',
            'orders': '/api/orders/',
            'cart': '/api/cart/',
            'wishlist': '/api/wishlist/',
            'reviews': '/api/reviews/',
            'sales': '/api/sales/',
            'offers': '/api/offers/',
            'promoters': '/api/promoters/',
            'contact': '/api/contact/',
            'admin': '/api/admin/',
            'health': '/health',
        },
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    return Response({'status': 'OK', 'timestamp': timezone.now().isoformat()})


@api_view(['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def route_not_found(request):
    return Response({'error': 'Route not found'}, status=status.HTTP_404_NOT_FOUND)


# Auth endpoints
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Customer registration endpoint"""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"New customer registered: {user.email}")
    return Response(build_auth_payload(user, 'User created successfully'), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def admin_register(request):
    """Administrator registration, gated by an access key"""
    if not access_key_configured():
        return Response({'error': 'Admin access key not configured'}, status=status.HTTP_403_FORBIDDEN)
    if not verify_access_key(request.data.get('access_key')):
        logger.warning(f"Admin registration rejected for {request.data.get('email')}: invalid access key")
        return Response({'error': 'Invalid access key'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AdminRegisterSerializer(data=request.data, context={'role': User.ROLE_ADMIN})
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"New administrator registered: {user.email}")
    return Response(build_auth_payload(user, 'Admin user created successfully'), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Get or update the current user's profile"""
    if request.method == 'GET':
        return Response({'user': UserSerializer(request.user).data})
    serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response({'message': 'Profile updated successfully', 'user': UserSerializer(request.user).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user"""
    return Response({'user': UserSerializer(request.user).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """Change the current user's password"""
    return _change_password(request, request.user)


def _change_password(request, user):
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    if not user.check_password(serializer.validated_data['current_password']):
        return Response({'error': 'Current password is incorrect'}, status=status.HTTP_400_BAD_REQUEST)
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password', 'updated_at'])
    return Response({'message': 'Password changed successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    """Issue a one-hour reset token without revealing whether the account exists"""
    email = (request.data.get('email') or '').strip()
    if not email:
        return Response({'error': 'Email is required'}, status=status.HTTP_400_BAD_REQUEST)

    payload = {'message': 'If an account with that email exists, a password reset link has been sent.'}
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user:
        reset_token = str(PasswordResetToken.for_user(user))
        logger.info(f"Password reset token issued for {user.email}")
        if settings.EXPOSE_RESET_TOKEN:
            payload['reset_token'] = reset_token
    return Response(payload)


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request):
    """Reset a password with a token from forgot-password"""
    serializer = PasswordResetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        user_id, fingerprint = read_reset_token(serializer.validated_data['token'])
    except ResetTokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(pk=user_id).first()
    if not user:
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    if fingerprint != password_fingerprint(user):
        return Response({'error': 'Invalid reset token'}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password', 'updated_at'])
    logger.info(f"Password reset for {user.email}")
    return Response({'message': 'Password reset successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_simple(request):
    """Reset a password by email without a token"""
    serializer = SimplePasswordResetSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = User.objects.filter(email__iexact=serializer.validated_data['email']).first()
    if not user:
        return Response({'error': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password', 'updated_at'])
    logger.info(f"Password reset (simple) for {user.email}")
    return Response({'message': 'Password reset successfully'})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def account_detail(request, pk):
    """Update or delete your own account"""
    if request.user.pk != pk:
        return Response({'error': 'You can only modify your own account'}, status=status.HTTP_403_FORBIDDEN)
    user = request.user

    if request.method == 'PUT':
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'message': 'Profile updated successfully', 'user': UserSerializer(user).data})

    # DELETE
    reason = request.data.get('reason') or 'No reason provided'
    logger.info(f"User {user.email} deleted their account. Reason: {reason}")
    create_audit_log(
        request=request, action='account_delete', model_name='User', object_id=user.pk,
        object_name=user.email, changes={'reason': reason}, user=None
    )
    user.delete()
    return Response({'message': 'Account deleted successfully'})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def account_change_password(request, pk):
    """Change the password of your own account"""
    if request.user.pk != pk:
        return Response({'error': 'You can only change your own password'}, status=status.HTTP_403_FORBIDDEN)
    return _change_password(request, request.user)


@api_view(['POST'])
@permission_classes([AllowAny])
def verify_access_key_view(request):
    """Check an admin access key"""
    access_key = request.data.get('access_key')
    if not access_key:
        return Response({'error': 'Access key is required'}, status=status.HTTP_400_BAD_REQUEST)
    if verify_access_key(access_key):
        return Response({'valid': True, 'message': 'Access key is valid'})
    return Response({'valid': False, 'message': 'Invalid access key'})


# Admin user views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def admin_user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all()
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role.upper())
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)

    if User.objects.filter(email__iexact=request.data.get('email', '')).exists():
        return Response({'error': 'Email already exists.'}, status=status.HTTP_409_CONFLICT)
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    create_audit_log(request=request, action='create', model_name='User', object_id=user.pk, object_name=user.email)
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreAdmin])
def admin_user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        email = request.data.get('email')
        if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            return Response({'error': 'Email already exists.'}, status=status.HTTP_409_CONFLICT)
        serializer = UserSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        if 'role' in serializer.validated_data:
            user.is_staff = user.role == User.ROLE_ADMIN or user.is_superuser
            user.save(update_fields=['is_staff'])
        create_audit_log(request=request, action='update', model_name='User', object_id=user.pk,
                         object_name=user.email, changes=dict(serializer.validated_data))
        return Response(UserSerializer(user).data)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account from the admin panel'},
                            status=status.HTTP_400_BAD_REQUEST)
        name = user.full_name or user.email
        create_audit_log(request=request, action='delete', model_name='User', object_id=user.pk, object_name=user.email)
        user.delete()
        return Response({'message': f"User '{name}' deleted successfully"})


@api_view(['PUT'])
@permission_classes([IsStoreAdmin])
def admin_access_key_update(request):
    """Replace the admin access key; requires the admin's own password"""
    current_password = request.data.get('current_password')
    new_access_key = request.data.get('new_access_key')
    if not current_password or not new_access_key:
        return Response({'error': 'Current password and new access key are required'},
                        status=status.HTTP_400_BAD_REQUEST)
    if not request.user.check_password(current_password):
        return Response({'error': 'Current password is incorrect'}, status=status.HTTP_400_BAD_REQUEST)
    if not is_strong_access_key(new_access_key):
        return Response({
            'error': 'Access key must be at least 8 characters and contain uppercase, lowercase, '
                     'number and special character'
        }, status=status.HTTP_400_BAD_REQUEST)

    SiteSetting.objects.update_or_create(
        key=SiteSetting.ADMIN_ACCESS_KEY,
        defaults={'value': hash_access_key(new_access_key), 'description': 'Hashed admin registration key'}
    )
    create_audit_log(request=request, action='access_key_change', model_name='SiteSetting',
                     object_id=SiteSetting.ADMIN_ACCESS_KEY)
    return Response({'message': 'Access key updated successfully'})


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def access_key_list_create(request):
    """List or create additional admin access keys"""
    if request.method == 'GET':
        serializer = AccessKeySerializer(AccessKey.objects.all(), many=True)
        return Response(serializer.data)

    key = (request.data.get('key') or '').strip()
    if not key:
        return Response({'error': 'Key is required'}, status=status.HTTP_400_BAD_REQUEST)
    if AccessKey.objects.filter(key=key).exists():
        return Response({'error': 'Access key already exists'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = AccessKeySerializer(data={'key': key, 'is_active': request.data.get('is_active', True)})
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsStoreAdmin])
def access_key_detail(request, pk):
    """Toggle or delete an access key"""
    access_key = get_object_or_404(AccessKey, pk=pk)
    if request.method == 'PATCH':
        serializer = AccessKeySerializer(access_key, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
    access_key.delete()
    return Response({'message': 'Access key deleted successfully'})


@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def color_palette(request):
    return Response({'colors': STANDARD_COLORS})


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsStoreAdmin])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)

from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, admin_register,
    profile, user_me, change_password, forgot_password, reset_password, reset_password_simple,
    account_detail, account_change_password, verify_access_key_view,
    admin_user_list_create, admin_user_detail, admin_access_key_update,
    access_key_list_create, access_key_detail, color_palette, audit_log_list
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/admin-register/', admin_register, name='admin-register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/profile/', profile, name='profile'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/change-password/', change_password, name='change-password'),
    path('auth/forgot-password/', forgot_password, name='forgot-password'),
    path('auth/reset-password/', reset_password, name='reset-password'),
    path('auth/reset-password-simple/', reset_password_simple, name='reset-password-simple'),
    path('auth/users/<int:pk>/', account_detail, name='account-detail'),
    path('auth/users/<int:pk>/change-password/', account_change_password, name='account-change-password'),
    path('auth/verify-access-key/', verify_access_key_view, name='verify-access-key'),

    # Admin user endpoints (also reachable as /api/users/)
    path('admin/users/', admin_user_list_create, name='admin-user-list-create'),
    path('admin/users/<int:pk>/', admin_user_detail, name='admin-user-detail'),
    path('users/', admin_user_list_create, name='user-list-create'),
    path('users/<int:pk>/', admin_user_detail, name='user-detail'),

    # Access keys
    path('admin/access-key/', admin_access_key_update, name='admin-access-key-update'),
    path('admin/access-keys/', access_key_list_create, name='access-key-list-create'),
    path('admin/access-keys/<int:pk>/', access_key_detail, name='access-key-detail'),

    path('admin/colors/', color_palette, name='color-palette'),

    # AuditLog endpoints
    path('admin/audit-logs/', audit_log_list, name='audit-log-list'),
]

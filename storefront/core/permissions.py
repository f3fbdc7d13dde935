from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsStoreAdmin(BasePermission):
    """Authenticated user with the ADMIN role (or Django staff)"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_store_admin)


def is_owner_or_admin(user, owner_id):
    """True when `user` owns the object identified by `owner_id` or is an admin"""
    if not user or not user.is_authenticated:
        return False
    return user.is_store_admin or (owner_id is not None and user.pk == owner_id)


class IsStoreAdminOrReadOnly(IsStoreAdmin):
    """Anyone may read; writes need an admin"""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)

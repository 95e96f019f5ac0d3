from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import User


def _has_role(request, role):
    user = request.user
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == role)


class IsPatient(BasePermission):
    message = 'Only patients can perform this action'

    def has_permission(self, request, view):
        return _has_role(request, User.ROLE_PATIENT)


class IsPharmacy(BasePermission):
    message = 'Only pharmacy users can perform this action'

    def has_permission(self, request, view):
        return _has_role(request, User.ROLE_PHARMACY)


class IsApprovedPharmacy(BasePermission):
    """Pharmacy user whose pharmacy exists and has been approved by an admin"""
    message = 'Only pharmacy users can perform this action'

    def has_permission(self, request, view):
        if not _has_role(request, User.ROLE_PHARMACY):
            return False
        pharmacy = request.user.get_pharmacy()
        if pharmacy is None or not pharmacy.is_approved:
            self.message = 'Your pharmacy is pending approval'
            return False
        return True


class IsAdminRole(BasePermission):
    message = 'Only administrators can perform this action'

    def has_permission(self, request, view):
        return _has_role(request, User.ROLE_ADMIN)


class IsAdminRoleOrReadOnly(BasePermission):
    """Anyone may read; only administrators may write"""
    message = 'Only administrators can modify this resource'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return _has_role(request, User.ROLE_ADMIN)

from rest_framework import permissions


class IsPlatformAdmin(permissions.BasePermission):
    """Allow access only to SUPER_ADMIN / ADMIN users."""
    message = "Admin access required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsVendor(permissions.BasePermission):
    """
    Allow access to vendors that own a client profile whose subscription
    has not lapsed. Expired, suspended and cancelled vendors are refused.
    """
    BLOCKED_STATUSES = ("EXPIRED", "SUSPENDED", "CANCELLED")

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        client = getattr(user, "client_profile", None)
        if client is None:
            self.message = "User does not have a client profile."
            return False

        if client.subscription_status in self.BLOCKED_STATUSES:
            self.message = (
                f"Your subscription is {client.subscription_status.lower()}. Please renew to continue."
            )
            return False

        return True


class IsAdminOrVendor(permissions.BasePermission):
    """Admins always pass; otherwise fall through to the vendor check."""

    def has_permission(self, request, view):
        user = request.user
        if user and user.is_authenticated and user.is_admin:
            return True
        vendor_check = IsVendor()
        allowed = vendor_check.has_permission(request, view)
        if not allowed:
            self.message = vendor_check.message
        return allowed


class HasClientProfile(permissions.BasePermission):
    """
    Vendor account check without the subscription gate, so lapsed
    vendors can still reach billing to renew.
    """
    message = "User does not have a client profile."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "client_profile", None) is not None

from django.db import models


class ClientScopedQuerySet(models.QuerySet):
    def for_client(self, client):
        return self.filter(client=client)

    def for_user(self, user):
        """Admins see every client's rows, vendors only their own, anyone else nothing."""
        if not user or not user.is_authenticated:
            return self.none()
        if getattr(user, "is_admin", False):
            return self
        client = getattr(user, "client_profile", None)
        if client is None:
            return self.none()
        return self.filter(client=client)


class ClientScopedManager(models.Manager.from_queryset(ClientScopedQuerySet)):
    pass

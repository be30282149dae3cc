from rest_framework import viewsets
from rest_framework.exceptions import PermissionDenied


class ClientScopedViewSet(viewsets.ModelViewSet):
    """Base ViewSet that filters rows by the caller's client,
    but lets platform admins see all data.
    """

    def get_queryset(self):
        return super().get_queryset().for_user(self.request.user)

    def get_client_or_403(self):
        client = getattr(self.request.user, "client_profile", None)
        if client is None:
            raise PermissionDenied("User does not have a client profile.")
        return client

    def perform_create(self, serializer):
        user = self.request.user

        # Admins name the client explicitly in the payload
        if getattr(user, "is_admin", False):
            serializer.save()
        else:
            serializer.save(client=self.get_client_or_403())

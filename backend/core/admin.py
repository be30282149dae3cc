from django.contrib import admin


class ClientSafeAdmin(admin.ModelAdmin):
    """Base admin that filters by client but allows platform admins to see all."""

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        if getattr(request.user, "is_admin", False):
            return qs

        client = getattr(request.user, "client_profile", None)
        if client:
            return qs.filter(client=client)

        return qs.none()

    def save_model(self, request, obj, form, change):
        """Pin new rows to the vendor's own client when a vendor saves them."""
        if not getattr(request.user, "is_admin", False):
            client = getattr(request.user, "client_profile", None)
            if client:
                obj.client = client
        obj.save()

from django.db import models
from .managers import ClientScopedManager


class ClientOwnedModel(models.Model):
    """Base for every row that belongs to a single vendor business."""
    client = models.ForeignKey(
        "clients.ClientProfile",
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )

    objects = ClientScopedManager()

    class Meta:
        abstract = True


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

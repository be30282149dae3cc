from django.conf import settings
from django.db import models
from django.utils.text import slugify


class ClientProfile(models.Model):
    """
    A vendor business using the CRM. Every product, delivery request,
    sale and rule belongs to exactly one client profile.
    """
    STATUS_TRIAL = "TRIAL"
    STATUS_ACTIVE = "ACTIVE"
    STATUS_PENDING = "PENDING"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_SUSPENDED = "SUSPENDED"

    SUBSCRIPTION_STATUS_CHOICES = [
        (STATUS_TRIAL, "Trial"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_PENDING, "Pending"),
        (STATUS_EXPIRED, "Expired"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_SUSPENDED, "Suspended"),
    ]
    BLOCKED_STATUSES = (STATUS_EXPIRED, STATUS_SUSPENDED, STATUS_CANCELLED)

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_profile",
    )
    business_name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=120, unique=True)
    business_type = models.CharField(max_length=100, blank=True)
    business_address = models.TextField(blank=True)
    contact_person = models.CharField(max_length=150, blank=True)

    notify_by_email = models.BooleanField(default=True)
    notify_by_whatsapp = models.BooleanField(default=False)

    subscription_status = models.CharField(
        max_length=20, choices=SUBSCRIPTION_STATUS_CHOICES, default=STATUS_TRIAL
    )
    subscription_start = models.DateTimeField(null=True, blank=True)
    subscription_end = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def _unique_slug(self):
        base = slugify(self.business_name)[:100] or "client"
        slug, n = base, 1
        while ClientProfile.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            n += 1
            slug = f"{base}-{n}"
        return slug

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    @property
    def is_blocked(self):
        return self.subscription_status in self.BLOCKED_STATUSES

    @property
    def notification_channels(self):
        """Channels the vendor opted into; EMAIL when none are set."""
        channels = []
        if self.notify_by_email:
            channels.append("EMAIL")
        if self.notify_by_whatsapp:
            channels.append("WHATSAPP")
        return channels or ["EMAIL"]

    def __str__(self):
        return self.business_name

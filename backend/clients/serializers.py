from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import ClientProfile

User = get_user_model()


class ClientUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "phone", "whatsapp_number", "is_active"]
        read_only_fields = fields


class ClientProfileSerializer(serializers.ModelSerializer):
    user = ClientUserSerializer(read_only=True)
    current_plan = serializers.SerializerMethodField()

    class Meta:
        model = ClientProfile
        fields = [
            "id",
            "user",
            "business_name",
            "slug",
            "business_type",
            "business_address",
            "contact_person",
            "notify_by_email",
            "notify_by_whatsapp",
            "subscription_status",
            "subscription_start",
            "subscription_end",
            "current_plan",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id", "user", "slug", "subscription_start", "subscription_end",
            "current_plan", "created_at", "updated_at",
        ]

    def get_current_plan(self, obj):
        from billing.utils import get_client_plan

        plan = get_client_plan(obj)
        return plan.code if plan else None


class VendorProfileSerializer(ClientProfileSerializer):
    """A vendor may edit its business details but never its subscription state."""

    class Meta(ClientProfileSerializer.Meta):
        read_only_fields = ClientProfileSerializer.Meta.read_only_fields + [
            "subscription_status", "is_active",
        ]


class ClientCreateSerializer(serializers.Serializer):
    """Creates the vendor user and its client profile in one step."""
    username = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    last_name = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    whatsapp_number = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    business_name = serializers.CharField(max_length=200)
    business_type = serializers.CharField(required=False, allow_blank=True, default="")
    business_address = serializers.CharField(required=False, allow_blank=True, default="")
    contact_person = serializers.CharField(required=False, allow_blank=True, default="")
    notify_by_email = serializers.BooleanField(default=True)
    notify_by_whatsapp = serializers.BooleanField(default=False)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with that email already exists.")
        return value.lower()

    def validate(self, attrs):
        username = attrs.get("username") or attrs["email"]
        if User.objects.filter(username=username).exists():
            raise serializers.ValidationError({"username": "A user with that username already exists."})
        attrs["username"] = username
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        user = User(
            username=validated_data["username"],
            email=validated_data["email"],
            first_name=validated_data.get("first_name", ""),
            last_name=validated_data.get("last_name", ""),
            phone=validated_data.get("phone"),
            whatsapp_number=validated_data.get("whatsapp_number"),
            role=User.ROLE_VENDOR,
        )
        user.set_password(validated_data["password"])
        user.save()

        # post_save on ClientProfile starts the trial subscription
        return ClientProfile.objects.create(
            user=user,
            business_name=validated_data["business_name"],
            business_type=validated_data.get("business_type", ""),
            business_address=validated_data.get("business_address", ""),
            contact_person=validated_data.get("contact_person", ""),
            notify_by_email=validated_data.get("notify_by_email", True),
            notify_by_whatsapp=validated_data.get("notify_by_whatsapp", False),
        )

    def to_representation(self, instance):
        return ClientProfileSerializer(instance).data


class ClientStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ClientProfile.SUBSCRIPTION_STATUS_CHOICES)


class BulkClientStatusSerializer(ClientStatusSerializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class BulkClientDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)

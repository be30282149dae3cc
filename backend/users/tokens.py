# users/tokens.py
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        # Add client data to token payload if available
        client = getattr(user, "client_profile", None)
        if client:
            token["client_id"] = client.id
            token["business_name"] = client.business_name
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        user = self.user
        data["role"] = user.role
        client = getattr(user, "client_profile", None)
        if client:
            data["client_id"] = client.id
            data["business_name"] = client.business_name
            data["subscription_status"] = client.subscription_status
        return data

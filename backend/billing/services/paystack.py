import hashlib
import hmac
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PaystackService:
    """
    Thin client for the Paystack REST API: payment links for subscription
    payments, verification of a returned reference, and webhook signatures.
    Network and HTTP errors surface as RuntimeError.
    """
    TIMEOUT = 15

    @classmethod
    def _url(cls, path):
        return f"{settings.PAYSTACK_BASE_URL.rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def _headers(cls):
        return {
            "Authorization": f"Bearer {settings.PAYSTACK_SECRET_KEY}",
            "Content-Type": "application/json",
        }

    @classmethod
    def _request(cls, method, path, action, **kwargs):
        try:
            response = requests.request(
                method, cls._url(path), headers=cls._headers(), timeout=cls.TIMEOUT, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            body = e.response.text if getattr(e, "response", None) is not None else None
            logger.exception("Paystack %s failed: %s", action, body)
            raise RuntimeError(f"Failed to {action} Paystack transaction: {body or e}") from e

    @classmethod
    def create_payment_link(cls, email: str, amount, reference: str = None, metadata: dict = None,
                            currency: str = None, callback_url: str = None):
        """
        Initialize a one-off transaction and return Paystack's response,
        whose `data` holds `authorization_url`, `access_code` and `reference`.
        `amount` is in the major unit (cedis); Paystack expects pesewas.
        """
        payload = {
            "email": email,
            "amount": int(amount * 100),
            "currency": currency or settings.DEFAULT_CURRENCY,
        }
        if reference:
            payload["reference"] = reference
        if metadata:
            payload["metadata"] = metadata
        callback_url = callback_url or settings.PAYSTACK_CALLBACK_URL
        if callback_url:
            payload["callback_url"] = callback_url

        data = cls._request("post", "transaction/initialize", "initialize", json=payload)
        logger.info(f"Paystack transaction initialized for {email}: {(data.get('data') or {}).get('reference')}")
        return data

    @classmethod
    def verify_transaction(cls, reference: str):
        return cls._request("get", f"transaction/verify/{reference}", "verify")

    @staticmethod
    def compute_signature(body: bytes) -> str:
        """HMAC-SHA512 of the raw request body keyed with the secret key."""
        return hmac.new(settings.PAYSTACK_SECRET_KEY.encode("utf-8"), body, hashlib.sha512).hexdigest()

    @classmethod
    def is_valid_signature(cls, body: bytes, signature: str) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(cls.compute_signature(body), signature)

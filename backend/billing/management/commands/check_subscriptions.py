import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from billing.models import Payment, Subscription
from billing.services.paystack import PaystackService
from billing.utils import complete_payment, expire_subscriptions

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Expire lapsed subscriptions and reconcile pending ones with Paystack."

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-paystack",
            action="store_true",
            help="Only expire subscriptions; do not call Paystack for pending payments.",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        self.stdout.write(self.style.MIGRATE_HEADING(f"Running subscription consistency check at {now}"))
        logger.info("Starting subscription consistency check.")

        # 1. Expire subscriptions that passed their end date
        expired_count = len(expire_subscriptions(now))

        # 2. Pending payments whose Paystack charge already succeeded
        verified_count = 0
        if not options["skip_paystack"]:
            pending = Payment.objects.select_related("client__user", "subscription").filter(
                status=Payment.STATUS_PENDING,
                subscription__status=Subscription.STATUS_PENDING,
            )
            for payment in pending:
                try:
                    ps_resp = PaystackService.verify_transaction(payment.reference)
                except RuntimeError:
                    logger.exception(f"Error verifying payment {payment.reference}")
                    continue

                data = ps_resp.get("data") or {}
                if ps_resp.get("status") and data.get("status") == "success":
                    complete_payment(payment, paystack_data=data)
                    verified_count += 1
                    logger.info(f"Reconciled payment {payment.reference} for client '{payment.client.slug}'")

        # 3. Log summary
        summary = (
            f"\nSubscription Audit Summary:\n"
            f"   - Expired: {expired_count}\n"
            f"   - Activated (verified): {verified_count}\n"
            f"   - Total Updated: {expired_count + verified_count}\n"
        )
        self.stdout.write(self.style.SUCCESS(summary))
        logger.info(summary)

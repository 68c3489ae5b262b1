import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from directory.models import ApprovalStatus, Person, RegistrationState
from directory.services.documents import CV_BUCKET, get_document_store
from directory.services.errors import DocumentStoreError

logger = logging.getLogger(__name__)

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Delete self-registrations that stopped before their person profile "
        "was linked, together with any CV they stored."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=7,
            help="Only prune registrations started more than this many days ago.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the registrations that would be pruned without deleting them.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        if days < 1:
            raise CommandError("--days must be at least 1.")
        cutoff = timezone.now() - timedelta(days=days)

        stale = (
            User.objects.filter(
                approval_status=ApprovalStatus.PENDING,
                is_active=False,
                date_joined__lt=cutoff,
            )
            .filter(~Q(workflow_state="") | Q(identity_metadata__pending_approval=True))
            .exclude(workflow_state=RegistrationState.LINKED)
            .order_by("date_joined")
        )

        if options["dry_run"]:
            for account in stale:
                self.stdout.write(
                    f"Would prune {account.email} (stopped at {account.workflow_state})")
            self.stdout.write(self.style.SUCCESS(
                f"{stale.count()} stale registration(s) found."))
            return

        store = get_document_store()
        pruned = 0
        for account in stale:
            account_id = account.pk
            try:
                removed = store.delete_owner_documents(CV_BUCKET, account_id)
            except DocumentStoreError as exc:
                logger.warning(
                    "Skipping account %s: could not remove its CV (%s)", account_id, exc.detail)
                self.stderr.write(f"Skipped {account.email}: {exc.message}")
                continue
            with transaction.atomic():
                Person.objects.filter(user=account).delete()
                account.delete()
            pruned += 1
            logger.info("Pruned stale registration %s (%d document(s))", account_id, removed)

        self.stdout.write(self.style.SUCCESS(
            f"Pruned {pruned} stale registration(s)."))

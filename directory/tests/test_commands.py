from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from directory.models import ApprovalStatus, Person, RegistrationState
from directory.services.documents import DjangoDocumentStore
from directory.services.errors import DocumentStoreError, ErrorKind

from .factories import make_applicant

User = get_user_model()


def _stalled(email, state=RegistrationState.UPLOADED_CV, age_days=10):
    account = User.objects.create_user(
        email=email,
        is_active=False,
        approval_status=ApprovalStatus.PENDING,
        workflow_state=state,
        identity_metadata={"pending_approval": True},
    )
    User.objects.filter(pk=account.pk).update(
        date_joined=timezone.now() - timedelta(days=age_days))
    return account


class PruneStaleRegistrationsTests(TestCase):
    def _run(self, *args):
        out = StringIO()
        call_command("prune_stale_registrations", *args, stdout=out, stderr=StringIO())
        return out.getvalue()

    def test_stalled_registration_and_cv_are_removed(self):
        account = _stalled("stalled@pamje.test")
        cv_path = default_storage.save(
            f"cvs/{account.pk}/cv_1.pdf", ContentFile(b"%PDF-1.4"))

        output = self._run()

        self.assertIn("Pruned 1", output)
        self.assertFalse(User.objects.filter(pk=account.pk).exists())
        self.assertFalse(default_storage.exists(cv_path))

    def test_person_written_before_link_is_removed(self):
        account = _stalled("half@pamje.test", state=RegistrationState.PERSON_WRITTEN)
        Person.objects.create(user=account, first_name="Half", last_name="Done")
        self._run()
        self.assertFalse(Person.objects.exists())
        self.assertFalse(User.objects.filter(pk=account.pk).exists())

    def test_identity_without_recorded_state_is_removed(self):
        account = _stalled("blank@pamje.test", state="")
        self._run()
        self.assertFalse(User.objects.filter(pk=account.pk).exists())

    def test_pending_account_outside_self_registration_is_kept(self):
        account = User.objects.create_user(
            email="manual@pamje.test", approval_status=ApprovalStatus.PENDING)
        User.objects.filter(pk=account.pk).update(
            date_joined=timezone.now() - timedelta(days=30))
        self._run()
        self.assertTrue(User.objects.filter(pk=account.pk).exists())

    def test_completed_and_recent_registrations_are_kept(self):
        linked = make_applicant()
        User.objects.filter(pk=linked.pk).update(
            date_joined=timezone.now() - timedelta(days=30))
        recent = _stalled("recent@pamje.test", age_days=1)

        output = self._run()

        self.assertIn("Pruned 0", output)
        self.assertTrue(User.objects.filter(pk=linked.pk).exists())
        self.assertTrue(User.objects.filter(pk=recent.pk).exists())

    def test_days_option(self):
        recent = _stalled("recent@pamje.test", age_days=2)
        self._run("--days", "1")
        self.assertFalse(User.objects.filter(pk=recent.pk).exists())

    def test_dry_run_deletes_nothing(self):
        account = _stalled("stalled@pamje.test")
        output = self._run("--dry-run")
        self.assertIn("Would prune stalled@pamje.test", output)
        self.assertTrue(User.objects.filter(pk=account.pk).exists())

    def test_storage_failure_skips_account(self):
        account = _stalled("stalled@pamje.test")
        with patch.object(DjangoDocumentStore, "delete_owner_documents",
                          side_effect=DocumentStoreError(ErrorKind.STORAGE_FAILED, "offline")):
            output = self._run()
        self.assertIn("Pruned 0", output)
        self.assertTrue(User.objects.filter(pk=account.pk).exists())

    def test_days_must_be_positive(self):
        with self.assertRaises(CommandError):
            self._run("--days", "0")

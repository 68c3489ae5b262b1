from datetime import timedelta
from unittest.mock import MagicMock

from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from directory.models import ApprovalStatus, UserToken
from directory.services.identity import IdentityStore
from directory.workflows.activation import ActivationWorkflow
from directory.workflows.exceptions import ApplicationInvalid

from .factories import PASSWORD, make_applicant, make_member

User = get_user_model()


def _approved_applicant(**kwargs):
    return make_applicant(status=ApprovalStatus.APPROVED, **kwargs)


class SetPasswordPolicyTests(APITestCase):
    def setUp(self):
        self.identity_store = MagicMock(spec=IdentityStore)
        self.workflow = ActivationWorkflow(identity_store=self.identity_store)

    def test_short_password_makes_no_identity_call(self):
        with self.assertRaises(ApplicationInvalid) as ctx:
            self.workflow.set_password("token", "short", "short")
        self.assertEqual(
            ctx.exception.errors["password"],
            ["Password must be at least 8 characters long"],
        )
        self.identity_store.open_recovery_session.assert_not_called()
        self.identity_store.update_credentials.assert_not_called()

    def test_mismatch_makes_no_identity_call(self):
        with self.assertRaises(ApplicationInvalid) as ctx:
            self.workflow.set_password("token", "Abcdefg1", "Different1")
        self.assertEqual(ctx.exception.errors["confirm_password"], ["Passwords do not match"])
        self.identity_store.open_recovery_session.assert_not_called()

    def test_missing_digit(self):
        with self.assertRaises(ApplicationInvalid) as ctx:
            self.workflow.set_password("token", "Abcdefgh", "Abcdefgh")
        self.assertEqual(
            ctx.exception.errors["password"],
            ["Password must contain uppercase, lowercase, and numbers"],
        )


class SetPasswordTests(APITestCase):
    def setUp(self):
        self.account = _approved_applicant()
        self.token = UserToken.issue(self.account, UserToken.ACTIVATION, ttl_hours=48)

    def _set_password(self, password="Abcdefg1", confirm=None, token=None):
        return self.client.post(
            reverse("auth-set-password"),
            {
                "token": token or self.token.token,
                "password": password,
                "confirm_password": password if confirm is None else confirm,
            },
            format="json",
        )

    def test_set_password_activates_account_and_person(self):
        response = self._set_password()
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.account.refresh_from_db()
        self.assertTrue(self.account.is_active)
        self.assertEqual(self.account.approval_status, ApprovalStatus.APPROVED)
        self.assertTrue(self.account.check_password("Abcdefg1"))
        self.account.person.refresh_from_db()
        self.assertTrue(self.account.person.is_active)
        self.assertTrue(self.account.person.is_verified)
        self.token.refresh_from_db()
        self.assertTrue(self.token.is_used)

        login = self.client.post(
            reverse("auth-login"),
            {"email": self.account.email, "password": "Abcdefg1"},
            format="json",
        )
        self.assertEqual(login.status_code, status.HTTP_200_OK)

    def test_short_password_via_api(self):
        response = self._set_password("short")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", response.data)
        self.account.refresh_from_db()
        self.assertFalse(self.account.is_active)

    def test_mismatch_via_api(self):
        response = self._set_password("Abcdefg1", "Different1")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("confirm_password", response.data)

    def test_link_cannot_be_used_twice(self):
        self._set_password()
        response = self._set_password("Zyxwvut9")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "recovery_link_invalid")

    def test_unknown_token(self):
        response = self._set_password(token="not-a-real-token")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "recovery_link_invalid")

    def test_expired_link(self):
        self.token.expires_at = timezone.now() - timedelta(minutes=1)
        self.token.save(update_fields=["expires_at"])
        response = self._set_password()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "recovery_link_expired")
        self.account.refresh_from_db()
        self.assertFalse(self.account.is_active)

    def test_rejected_account_cannot_activate_through_stale_link(self):
        User.objects.filter(pk=self.account.pk).update(approval_status=ApprovalStatus.REJECTED)
        response = self._set_password()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.account.refresh_from_db()
        self.assertFalse(self.account.is_active)
        self.assertFalse(self.account.check_password("Abcdefg1"))

    def test_reused_password_is_reported(self):
        account = _approved_applicant(email="again@pamje.test", password="Abcdefg1")
        token = UserToken.issue(account, UserToken.ACTIVATION, ttl_hours=48)
        response = self._set_password(token=token.token)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "password_reused")
        account.refresh_from_db()
        self.assertFalse(account.is_active)


class PasswordResetTests(APITestCase):
    def setUp(self):
        self.member = make_member(email="carol@pamje.test")

    def test_password_reset_flow(self):
        response = self.client.post(
            reverse("auth-password-forgot"), {"email": "carol@pamje.test"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = UserToken.objects.get(user=self.member, token_type=UserToken.RESET)
        self.assertIn(f"/reset-password?token={token.token}", mail.outbox[0].body)

        reset = self.client.post(
            reverse("auth-password-reset"),
            {"token": token.token, "password": "NewSecret123", "confirm_password": "NewSecret123"},
            format="json",
        )
        self.assertEqual(reset.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertTrue(self.member.check_password("NewSecret123"))

    def test_unknown_email_gets_same_answer(self):
        known = self.client.post(
            reverse("auth-password-forgot"), {"email": "carol@pamje.test"}, format="json")
        unknown = self.client.post(
            reverse("auth-password-forgot"), {"email": "nobody@pamje.test"}, format="json")
        self.assertEqual(unknown.status_code, status.HTTP_200_OK)
        self.assertEqual(known.data, unknown.data)
        self.assertEqual(len(mail.outbox), 1)

    def test_activation_token_cannot_reset_password(self):
        token = UserToken.issue(self.member, UserToken.ACTIVATION, ttl_hours=48)
        response = self.client.post(
            reverse("auth-password-reset"),
            {"token": token.token, "password": "NewSecret123", "confirm_password": "NewSecret123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.member.refresh_from_db()
        self.assertTrue(self.member.check_password(PASSWORD))

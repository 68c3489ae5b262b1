from __future__ import annotations

import secrets
import uuid
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.text import slugify


class Role(models.TextChoices):
    USER = "user", "User"
    RESEARCHER = "researcher", "Researcher"
    REVIEWER = "reviewer", "Reviewer"
    EDITOR = "editor", "Editor"
    ADMIN = "admin", "Admin"
    SUPER_ADMIN = "super_admin", "Super admin"


class ApprovalStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class RegistrationState(models.TextChoices):
    """Durable progress marker of a self-registration, in step order."""

    CREATED_IDENTITY = "created_identity", "Identity created"
    UPLOADED_CV = "uploaded_cv", "CV uploaded"
    PROFILE_WRITTEN = "profile_written", "Account profile written"
    PERSON_WRITTEN = "person_written", "Person profile written"
    LINKED = "linked", "Linked"

    @classmethod
    def ordered(cls) -> list["RegistrationState"]:
        return [
            cls.CREATED_IDENTITY,
            cls.UPLOADED_CV,
            cls.PROFILE_WRITTEN,
            cls.PERSON_WRITTEN,
            cls.LINKED,
        ]

    @classmethod
    def reached(cls, current: str, step: "RegistrationState") -> bool:
        if not current:
            return False
        order = cls.ordered()
        return order.index(cls(current)) >= order.index(step)


def compose_full_name(*parts: str | None) -> str:
    """Join name parts with single spaces, dropping empty ones."""
    cleaned = (" ".join((part or "").split()) for part in parts)
    return " ".join(part for part in cleaned if part)


class UserManager(BaseUserManager):
    def create_user(self, email: str, password: str | None = None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email).strip().lower()
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        if not password:
            raise ValueError("Superusers must have a password.")
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("role", Role.SUPER_ADMIN)
        extra_fields.setdefault("approval_status", ApprovalStatus.APPROVED)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """A login-capable account together with its approval lifecycle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    role = models.CharField(
        max_length=32, choices=Role.choices, default=Role.USER)
    approval_status = models.CharField(
        max_length=16,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
    )
    is_active = models.BooleanField(default=False)
    is_staff = models.BooleanField(default=False)
    cv_url = models.CharField(max_length=500, blank=True)
    approval_date = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reviewed_accounts",
    )
    registration_notes = models.TextField(blank=True)
    person = models.OneToOneField(
        "Person",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="account",
    )
    workflow_state = models.CharField(
        max_length=32, choices=RegistrationState.choices, blank=True)
    identity_metadata = models.JSONField(default=dict, blank=True)
    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    objects = UserManager()

    class Meta:
        ordering = ("-date_joined",)
        constraints = [
            models.CheckConstraint(
                condition=Q(is_active=False) | Q(approval_status="approved"),
                name="active_account_is_approved",
            ),
        ]

    def __str__(self) -> str:
        return self.email

    @property
    def is_operator(self) -> bool:
        return self.role in {Role.ADMIN, Role.SUPER_ADMIN}

    @property
    def is_registration_complete(self) -> bool:
        return self.workflow_state == RegistrationState.LINKED

    @property
    def is_unfinished_registration(self) -> bool:
        """Self-registration that stopped before its person profile was linked."""
        return (
            self.identity_metadata.get("pending_approval") is True
            and self.workflow_state != RegistrationState.LINKED
        )

    def advance_workflow(self, state: RegistrationState) -> None:
        if RegistrationState.reached(self.workflow_state, state):
            return
        self.workflow_state = state
        self.save(update_fields=["workflow_state", "updated_at"])


class UserToken(models.Model):
    ACTIVATION = "activation"
    RESET = "reset"

    TOKEN_TYPE_CHOICES = (
        (ACTIVATION, "Account activation"),
        (RESET, "Password reset"),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL,
                             on_delete=models.CASCADE, related_name="tokens")
    token = models.CharField(max_length=128, unique=True, editable=False)
    token_type = models.CharField(max_length=32, choices=TOKEN_TYPE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    is_used = models.BooleanField(default=False)

    class Meta:
        indexes = [models.Index(fields=("token", "token_type"), name="directory_token_lookup_idx")]
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"{self.user.email} ({self.token_type})"

    @classmethod
    def issue(cls, user: "User", token_type: str, ttl_hours: int) -> "UserToken":
        cls.objects.filter(user=user, token_type=token_type,
                           is_used=False).update(is_used=True)
        expires_at = timezone.now() + timedelta(hours=ttl_hours)
        token = secrets.token_urlsafe(48)
        return cls.objects.create(user=user, token=token, token_type=token_type, expires_at=expires_at)

    def mark_used(self) -> None:
        self.is_used = True
        self.save(update_fields=["is_used"])

    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at


class Organization(models.Model):
    class OrgType(models.TextChoices):
        PUBLISHER = "publisher", "Publisher"
        SOCIETY = "society", "Society"
        INSTITUTION = "institution", "Institution"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    acronym = models.CharField(max_length=32, blank=True)
    org_type = models.CharField(
        max_length=16, choices=OrgType.choices, default=OrgType.PUBLISHER)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    website_url = models.URLField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=128, blank=True)
    state = models.CharField(max_length=128, blank=True)
    country = models.CharField(max_length=128, blank=True)
    description = models.TextField(blank=True)
    logo_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class IndexingService(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    service_name = models.CharField(max_length=255, unique=True)
    service_url = models.URLField(blank=True)
    description = models.TextField(blank=True)
    coverage = models.CharField(max_length=255, blank=True)
    logo_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("service_name",)
        verbose_name = "Indexing service"
        verbose_name_plural = "Indexing services"

    def __str__(self) -> str:
        return self.service_name


class Journal(models.Model):
    class JournalType(models.TextChoices):
        OPEN_ACCESS = "open_access", "Open access"
        SUBSCRIPTION = "subscription", "Subscription"
        HYBRID = "hybrid", "Hybrid"

    class PeerReviewType(models.TextChoices):
        DOUBLE_BLIND = "double_blind", "Double blind"
        SINGLE_BLIND = "single_blind", "Single blind"
        OPEN = "open", "Open"
        EDITORIAL = "editorial", "Editorial"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        CEASED = "ceased", "Ceased"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_title = models.CharField(max_length=255, unique=True)
    slug = models.SlugField(max_length=255, unique=True, editable=False)
    short_title = models.CharField(max_length=128, blank=True)
    acronym = models.CharField(max_length=32, blank=True)
    description = models.TextField(blank=True)
    aims_scope = models.TextField(blank=True)
    subject_area = models.JSONField(default=list, blank=True)
    issn_print = models.CharField(max_length=9, blank=True)
    issn_online = models.CharField(max_length=9, blank=True)
    publisher = models.ForeignKey(
        Organization,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="published_journals",
    )
    society = models.ForeignKey(
        Organization,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="society_journals",
    )
    publication_frequency = models.CharField(max_length=64, blank=True)
    journal_type = models.CharField(
        max_length=16, choices=JournalType.choices, default=JournalType.OPEN_ACCESS)
    peer_review_type = models.CharField(
        max_length=16, choices=PeerReviewType.choices, default=PeerReviewType.DOUBLE_BLIND)
    website_url = models.URLField(blank=True)
    contact_email = models.EmailField(blank=True)
    country = models.CharField(max_length=128, blank=True)
    founded_year = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.ACTIVE)
    is_featured = models.BooleanField(default=False)
    indexing_services = models.ManyToManyField(
        IndexingService, related_name="journals", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("full_title",)
        verbose_name = "Journal"
        verbose_name_plural = "Journals"

    def __str__(self) -> str:
        return self.full_title

    def save(self, *args, **kwargs):
        if not self.slug:
            base_slug = slugify(self.full_title)
            slug = base_slug
            counter = 1
            while Journal.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                counter += 1
                slug = f"{base_slug}-{counter}"
            self.slug = slug
        super().save(*args, **kwargs)

    def soft_delete(self) -> None:
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])


class Person(models.Model):
    """Professional identity of an editor, reviewer or applicant."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="person_profile",
    )
    title = models.CharField(max_length=64, blank=True)
    first_name = models.CharField(max_length=150)
    middle_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150)
    suffix = models.CharField(max_length=32, blank=True)
    full_name = models.CharField(max_length=512, editable=False)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    affiliation = models.CharField(max_length=255, blank=True)
    position = models.CharField(max_length=255, blank=True)
    department = models.CharField(max_length=255, blank=True)
    specialization = models.JSONField(default=list, blank=True)
    orcid = models.CharField(max_length=19, blank=True)
    bio = models.TextField(blank=True)
    photo_url = models.CharField(max_length=500, blank=True)
    cv_url = models.CharField(max_length=500, blank=True)
    is_admin = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("last_name", "first_name")
        verbose_name = "Person"
        verbose_name_plural = "People"

    def __str__(self) -> str:
        return self.full_name

    def save(self, *args, **kwargs):
        self.full_name = compose_full_name(
            self.title,
            self.first_name,
            self.middle_name,
            self.last_name,
            self.suffix,
        )
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "full_name" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["full_name"]
        super().save(*args, **kwargs)

    def soft_delete(self) -> None:
        self.deleted_at = timezone.now()
        self.is_active = False
        self.save(update_fields=["deleted_at", "is_active", "updated_at"])


class EditorialAssignment(models.Model):
    class RoleType(models.TextChoices):
        EDITOR_IN_CHIEF = "editor_in_chief", "Editor-in-chief"
        ASSOCIATE_EDITOR = "associate_editor", "Associate editor"
        MANAGING_EDITOR = "managing_editor", "Managing editor"
        BOARD_MEMBER = "board_member", "Board member"
        REVIEWER = "reviewer", "Reviewer"

    id = models.BigAutoField(primary_key=True)
    person = models.ForeignKey(
        Person,
        related_name="assignments",
        on_delete=models.CASCADE,
    )
    journal = models.ForeignKey(
        Journal,
        related_name="editorial_team",
        on_delete=models.CASCADE,
    )
    role = models.CharField(max_length=255)
    role_type = models.CharField(
        max_length=32, choices=RoleType.choices, default=RoleType.BOARD_MEMBER)
    responsibilities = models.TextField(blank=True)
    display_order = models.PositiveIntegerField(default=0)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("display_order", "created_at", "id")
        indexes = [models.Index(fields=("journal", "is_active"), name="directory_board_active_idx")]
        verbose_name = "Editorial assignment"
        verbose_name_plural = "Editorial assignments"

    def __str__(self) -> str:
        return f"{self.person.full_name} -> {self.journal.full_title} ({self.role})"

    def toggle_active(self) -> None:
        self.is_active = not self.is_active
        self.save(update_fields=["is_active", "updated_at"])

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import (
    EditorialAssignment,
    IndexingService,
    Journal,
    Organization,
    Person,
    Role,
)
from .permissions import authorize, role_of
from .validators import validate_issn, validate_orcid
from .workflows.activation import ActivationWorkflow
from .workflows.approval import ApprovalWorkflow
from .workflows.authentication import AuthenticationGate
from .workflows.registration import RegistrationApplication, RegistrationWorkflow

User = get_user_model()


def _optional_text(**kwargs):
    return serializers.CharField(required=False, allow_blank=True, default="", **kwargs)


class PersonSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Person
        fields = (
            "id",
            "full_name",
            "title",
            "affiliation",
            "position",
            "is_verified",
            "is_active",
        )
        read_only_fields = fields


class AccountSerializer(serializers.ModelSerializer):
    person = PersonSummarySerializer(read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "approval_status",
            "is_active",
            "cv_url",
            "approval_date",
            "date_joined",
            "last_login",
            "person",
        )
        read_only_fields = fields


class PersonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Person
        fields = (
            "id",
            "user",
            "title",
            "first_name",
            "middle_name",
            "last_name",
            "suffix",
            "full_name",
            "email",
            "phone",
            "affiliation",
            "position",
            "department",
            "specialization",
            "orcid",
            "bio",
            "photo_url",
            "cv_url",
            "is_admin",
            "is_active",
            "is_verified",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "user",
            "full_name",
            "photo_url",
            "cv_url",
            "created_at",
            "updated_at",
        )

    def validate_first_name(self, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise serializers.ValidationError("First name is required")
        return normalized

    def validate_last_name(self, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise serializers.ValidationError("Last name is required")
        return normalized

    def validate_orcid(self, value: str | None) -> str:
        return validate_orcid(value)

    def validate_specialization(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Specialization must be a list of strings.")
        return [item.strip() for item in value if item.strip()]


class PendingAccountSerializer(serializers.ModelSerializer):
    person = PersonSerializer(read_only=True)
    is_unfinished_registration = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "approval_status",
            "cv_url",
            "workflow_state",
            "is_unfinished_registration",
            "date_joined",
            "person",
        )
        read_only_fields = fields


class RegistrationSerializer(serializers.Serializer):
    # Field rules live in RegistrationApplication so that every error is
    # reported in one response.
    first_name = _optional_text()
    last_name = _optional_text()
    middle_name = _optional_text()
    email = _optional_text()
    phone = _optional_text()
    title = _optional_text()
    affiliation = _optional_text()
    position = _optional_text()
    cv = serializers.FileField(required=False, allow_null=True, default=None)
    accepted_terms = serializers.BooleanField(required=False, default=False)

    def save(self, **kwargs):
        application = RegistrationApplication(**self.validated_data)
        return RegistrationWorkflow().submit(application)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def save(self, **kwargs):
        return AuthenticationGate().login(
            self.validated_data["email"], self.validated_data["password"])


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()

    def save(self, **kwargs):
        AuthenticationGate().logout(self.validated_data["refresh"])


class SetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)
    password = serializers.CharField(
        write_only=True, required=False, allow_blank=True, trim_whitespace=False)
    confirm_password = serializers.CharField(
        write_only=True, required=False, allow_blank=True, trim_whitespace=False)

    def save(self, **kwargs):
        return ActivationWorkflow().set_password(
            self.validated_data["token"],
            self.validated_data.get("password"),
            self.validated_data.get("confirm_password"),
        )


class PasswordResetSerializer(SetPasswordSerializer):
    def save(self, **kwargs):
        return ActivationWorkflow().reset_password(
            self.validated_data["token"],
            self.validated_data.get("password"),
            self.validated_data.get("confirm_password"),
        )


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.CharField()

    def save(self, **kwargs):
        return ActivationWorkflow().request_password_reset(self.validated_data["email"])


class RejectionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class InvitationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=Role.choices, default=Role.USER)
    title = _optional_text()
    first_name = serializers.CharField()
    middle_name = _optional_text()
    last_name = serializers.CharField()
    suffix = _optional_text()
    phone = _optional_text()
    affiliation = _optional_text()
    position = _optional_text()
    department = _optional_text()

    def validate_email(self, value: str) -> str:
        normalized = value.strip().lower()
        if User.objects.filter(email__iexact=normalized).exists():
            raise serializers.ValidationError(
                "This email is already registered.")
        return normalized

    def validate_role(self, value: str) -> str:
        request = self.context.get("request")
        actor_role = role_of(getattr(request, "user", None))
        if not authorize(value, actor_role):
            raise serializers.ValidationError(
                "You cannot grant a role above your own.")
        return value

    def save(self, **kwargs):
        data = dict(self.validated_data)
        email = data.pop("email")
        role = data.pop("role")
        return ApprovalWorkflow().invite(self.context["request"].user, email, role, **data)


class AccountUpdateSerializer(serializers.Serializer):
    phone = serializers.CharField(required=False, allow_blank=True)
    affiliation = serializers.CharField(required=False, allow_blank=True)
    position = serializers.CharField(required=False, allow_blank=True)
    department = serializers.CharField(required=False, allow_blank=True)
    bio = serializers.CharField(required=False, allow_blank=True)
    orcid = serializers.CharField(required=False, allow_blank=True)
    specialization = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False)

    PERSON_FIELDS = ("phone", "affiliation", "position", "department",
                     "bio", "orcid", "specialization")

    def validate_orcid(self, value: str | None) -> str:
        return validate_orcid(value)

    def validate_specialization(self, value):
        return [item.strip() for item in value if item.strip()]

    def update(self, instance, validated_data):
        if "phone" in validated_data:
            instance.phone = validated_data["phone"].strip()
            instance.save(update_fields=["phone", "updated_at"])
        person = instance.person
        person_changes = {
            name: value for name, value in validated_data.items() if name in self.PERSON_FIELDS
        }
        if person is not None and person_changes:
            for attr, value in person_changes.items():
                setattr(person, attr, value.strip() if isinstance(value, str) else value)
            person.save(update_fields=list(person_changes) + ["updated_at"])
        return instance


class PersonPhotoSerializer(serializers.Serializer):
    photo = serializers.ImageField()


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = (
            "id",
            "name",
            "acronym",
            "org_type",
            "email",
            "phone",
            "website_url",
            "address",
            "city",
            "state",
            "country",
            "description",
            "logo_url",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_name(self, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise serializers.ValidationError("Organization name is required")
        return normalized


class IndexingServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = IndexingService
        fields = (
            "id",
            "service_name",
            "service_url",
            "description",
            "coverage",
            "logo_url",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")


class JournalSerializer(serializers.ModelSerializer):
    publisher_name = serializers.CharField(source="publisher.name", read_only=True, default=None)
    society_name = serializers.CharField(source="society.name", read_only=True, default=None)
    indexing_services = serializers.PrimaryKeyRelatedField(
        many=True, queryset=IndexingService.objects.all(), required=False)

    class Meta:
        model = Journal
        read_only_fields = ("id", "slug", "created_at", "updated_at")
        fields = (
            "id",
            "full_title",
            "slug",
            "short_title",
            "acronym",
            "description",
            "aims_scope",
            "subject_area",
            "issn_print",
            "issn_online",
            "publisher",
            "publisher_name",
            "society",
            "society_name",
            "publication_frequency",
            "journal_type",
            "peer_review_type",
            "website_url",
            "contact_email",
            "country",
            "founded_year",
            "status",
            "is_featured",
            "indexing_services",
            "created_at",
            "updated_at",
        )

    def validate_full_title(self, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise serializers.ValidationError("Journal title is required")
        return normalized

    def validate_issn_print(self, value: str | None) -> str:
        return validate_issn(value)

    def validate_issn_online(self, value: str | None) -> str:
        return validate_issn(value)

    def validate_subject_area(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Subject area must be a list of strings.")
        cleaned = []
        for item in value:
            name = " ".join(item.split())
            if name and name not in cleaned:
                cleaned.append(name)
        return cleaned


class EditorialAssignmentSerializer(serializers.ModelSerializer):
    person_name = serializers.CharField(source="person.full_name", read_only=True)
    journal_title = serializers.CharField(source="journal.full_title", read_only=True)

    class Meta:
        model = EditorialAssignment
        fields = (
            "id",
            "person",
            "person_name",
            "journal",
            "journal_title",
            "role",
            "role_type",
            "responsibilities",
            "display_order",
            "start_date",
            "end_date",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_role(self, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise serializers.ValidationError("Role title is required")
        return normalized

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError(
                {"end_date": "End date cannot be before the start date."})
        return attrs

    def active_role_warning(self) -> str | None:
        """Describe an existing active role for the same person and journal, if any."""
        assignment = self.instance
        existing = EditorialAssignment.objects.filter(
            person=assignment.person,
            journal=assignment.journal,
            is_active=True,
        ).exclude(pk=assignment.pk)
        if not existing.exists():
            return None
        roles = ", ".join(existing.values_list("role", flat=True))
        return (
            f"{assignment.person.full_name} already holds an active role on "
            f"{assignment.journal.full_title}: {roles}."
        )


class EditorialBoardMemberSerializer(serializers.ModelSerializer):
    person = PersonSummarySerializer(read_only=True)

    class Meta:
        model = EditorialAssignment
        fields = (
            "id",
            "role",
            "role_type",
            "responsibilities",
            "display_order",
            "start_date",
            "end_date",
            "person",
        )
        read_only_fields = fields

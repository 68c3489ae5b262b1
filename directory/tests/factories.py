from io import BytesIO

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from directory.models import ApprovalStatus, Person, RegistrationState, Role
from directory.services.documents import DjangoDocumentStore
from directory.services.errors import DocumentStoreError, ErrorKind
from directory.workflows.registration import RegistrationApplication

User = get_user_model()

PASSWORD = "Secretpass123"


def cv_upload(name="cv.pdf", content_type="application/pdf", content=b"%PDF-1.4 curriculum vitae"):
    return SimpleUploadedFile(name, content, content_type=content_type)


def photo_upload(name="photo.png"):
    buffer = BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


def make_super_admin(email="chair@pamje.test"):
    return User.objects.create_superuser(email=email, password=PASSWORD)


def make_member(email="member@pamje.test", role=Role.USER, password=PASSWORD):
    return User.objects.create_user(
        email=email,
        password=password,
        role=role,
        approval_status=ApprovalStatus.APPROVED,
        is_active=True,
    )


def make_applicant(email="applicant@pamje.test", status=ApprovalStatus.PENDING,
                   first_name="Maria", last_name="Santos", password=None):
    """A completed self-registration waiting for review."""
    account = User.objects.create_user(
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        approval_status=status,
        is_active=False,
        workflow_state=RegistrationState.LINKED,
        identity_metadata={"pending_approval": True},
    )
    person = Person.objects.create(
        user=account,
        first_name=first_name,
        last_name=last_name,
        email=email,
        is_active=False,
        is_verified=False,
    )
    account.person = person
    account.save(update_fields=["person", "updated_at"])
    return account


class FailingDocumentStore(DjangoDocumentStore):
    def upload(self, session, bucket, owner_id, upload, *, prefix):
        raise DocumentStoreError(ErrorKind.STORAGE_FAILED, "bucket unavailable")


def registration_application(**overrides):
    values = {
        "first_name": "Juan",
        "last_name": "Dela Cruz",
        "middle_name": "",
        "email": "Juan@Hospital.ph",
        "phone": "+63 2 555 0101",
        "title": "Dr.",
        "affiliation": "Philippine General Hospital",
        "position": "Consultant",
        "cv": cv_upload(),
        "accepted_terms": True,
    }
    values.update(overrides)
    return RegistrationApplication(**values)

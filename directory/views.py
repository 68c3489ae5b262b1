import logging
import uuid
from collections import Counter

from django.contrib.auth import get_user_model
from rest_framework import filters, generics, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenRefreshView, TokenVerifyView

from .models import (
    ApprovalStatus,
    EditorialAssignment,
    IndexingService,
    Journal,
    Organization,
    Person,
    Role,
)
from .pagination import ClientPageNumberPagination
from .permissions import IsOperator, IsOperatorOrReadOnly, IsSuperAdmin, authorize, role_of
from .serializers import (
    AccountSerializer,
    AccountUpdateSerializer,
    EditorialAssignmentSerializer,
    EditorialBoardMemberSerializer,
    IndexingServiceSerializer,
    InvitationSerializer,
    JournalSerializer,
    LoginSerializer,
    LogoutSerializer,
    OrganizationSerializer,
    PasswordResetRequestSerializer,
    PasswordResetSerializer,
    PendingAccountSerializer,
    PersonPhotoSerializer,
    PersonSerializer,
    RegistrationSerializer,
    RejectionSerializer,
    SetPasswordSerializer,
)
from .services.documents import PHOTO_BUCKET, get_document_store
from .services.sessions import IdentitySession
from .workflows.approval import ApprovalWorkflow

logger = logging.getLogger(__name__)

User = get_user_model()

UUID_LOOKUP_REGEX = r"[0-9a-fA-F-]{36}"


def _is_operator(request) -> bool:
    return authorize(Role.ADMIN, role_of(request.user))


def _with_category(queryset, category: str):
    # JSON containment lookups are not available on every backend.
    wanted = category.casefold()
    matching = [
        pk
        for pk, areas in queryset.prefetch_related(None).values_list("pk", "subject_area")
        if any(isinstance(name, str) and name.casefold() == wanted for name in areas or [])
    ]
    return queryset.filter(pk__in=matching)


def _uuid_or_none(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def _flag(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes"}:
        return True
    if normalized in {"0", "false", "no"}:
        return False
    return None


class RegistrationView(generics.GenericAPIView):
    serializer_class = RegistrationSerializer
    permission_classes = (permissions.AllowAny,)
    parser_classes = (MultiPartParser, FormParser)
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = "registration"

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = serializer.save()
        return Response(
            {
                "detail": outcome.message,
                "account_id": str(outcome.account_id),
                "person_id": str(outcome.person_id),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(generics.GenericAPIView):
    serializer_class = LoginSerializer
    permission_classes = (permissions.AllowAny,)
    authentication_classes = ()
    throttle_classes = (ScopedRateThrottle,)
    throttle_scope = "login"

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response(
            {
                "access": result.access,
                "refresh": result.refresh,
                "role": result.role,
                "destination": result.destination,
                "user": AccountSerializer(result.account).data,
            },
            status=status.HTTP_200_OK,
        )


class LogoutView(generics.GenericAPIView):
    serializer_class = LogoutSerializer
    permission_classes = (permissions.AllowAny,)

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"detail": "Logged out"}, status=status.HTTP_200_OK)


class UserTokenRefreshView(TokenRefreshView):
    pass


class UserTokenVerifyView(TokenVerifyView):
    pass


class SetPasswordView(generics.GenericAPIView):
    serializer_class = SetPasswordSerializer
    permission_classes = (permissions.AllowAny,)
    authentication_classes = ()

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response({"detail": result.message}, status=status.HTTP_200_OK)


class PasswordResetRequestView(generics.GenericAPIView):
    serializer_class = PasswordResetRequestSerializer
    permission_classes = (permissions.AllowAny,)
    authentication_classes = ()

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = serializer.save()
        return Response({"detail": message}, status=status.HTTP_200_OK)


class PasswordResetView(generics.GenericAPIView):
    serializer_class = PasswordResetSerializer
    permission_classes = (permissions.AllowAny,)
    authentication_classes = ()

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response({"detail": result.message}, status=status.HTTP_200_OK)


class ProfileView(APIView):
    permission_classes = (permissions.IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        serializer = AccountSerializer(request.user)
        return Response(serializer.data)

    def patch(self, request, *args, **kwargs):
        serializer = AccountUpdateSerializer(
            instance=request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(AccountSerializer(request.user).data)


class PendingApprovalViewSet(viewsets.GenericViewSet):
    serializer_class = PendingAccountSerializer
    permission_classes = (IsSuperAdmin,)
    pagination_class = ClientPageNumberPagination
    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_queryset(self):
        return ApprovalWorkflow().list_pending(self.request.user)

    def get_serializer_class(self):
        if self.action == "reject":
            return RejectionSerializer
        return PendingAccountSerializer

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        result = ApprovalWorkflow().approve(request.user, pk)
        return Response(self._result_payload(result), status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ApprovalWorkflow().reject(
            request.user, pk, serializer.validated_data["reason"])
        return Response(self._result_payload(result), status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="resend-activation")
    def resend_activation(self, request, pk=None):
        result = ApprovalWorkflow().resend_activation(request.user, pk)
        return Response(self._result_payload(result), status=status.HTTP_200_OK)

    def _result_payload(self, result):
        return {
            "detail": result.message,
            "email_sent": result.email_sent,
            "account": AccountSerializer(result.account).data,
        }


class InvitationView(generics.GenericAPIView):
    serializer_class = InvitationSerializer
    permission_classes = (IsOperator,)

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response(
            {
                "detail": result.message,
                "email_sent": result.email_sent,
                "account": AccountSerializer(result.account).data,
            },
            status=status.HTTP_201_CREATED,
        )


class DashboardView(APIView):
    permission_classes = (IsOperator,)

    def get(self, request, *args, **kwargs):
        journals = Journal.objects.filter(deleted_at__isnull=True)
        metrics = {
            "total_journals": journals.count(),
            "active_journals": journals.filter(status=Journal.Status.ACTIVE).count(),
            "total_organizations": Organization.objects.count(),
            "total_people": Person.objects.filter(deleted_at__isnull=True).count(),
            "pending_registrations": User.objects.filter(
                approval_status=ApprovalStatus.PENDING).count(),
            "active_assignments": EditorialAssignment.objects.filter(is_active=True).count(),
        }
        return Response({"metrics": metrics})


class HomeSummaryView(APIView):
    permission_classes = (permissions.AllowAny,)

    def get(self, request, *args, **kwargs):
        journals = Journal.objects.filter(deleted_at__isnull=True)
        metrics = {
            "active_journals": journals.filter(status=Journal.Status.ACTIVE).count(),
            "total_journals": journals.count(),
            "peer_reviewers": User.objects.filter(
                role=Role.REVIEWER, approval_status=ApprovalStatus.APPROVED).count(),
            "editors": EditorialAssignment.objects.filter(
                is_active=True,
                role_type__in=[
                    EditorialAssignment.RoleType.EDITOR_IN_CHIEF,
                    EditorialAssignment.RoleType.ASSOCIATE_EDITOR,
                ],
            ).count(),
        }
        return Response({"metrics": metrics})


class JournalViewSet(viewsets.ModelViewSet):
    queryset = Journal.objects.select_related(
        "publisher", "society").prefetch_related("indexing_services")
    serializer_class = JournalSerializer
    permission_classes = (IsOperatorOrReadOnly,)
    lookup_field = "slug"
    pagination_class = ClientPageNumberPagination
    filter_backends = (filters.SearchFilter, filters.OrderingFilter)
    search_fields = ("full_title", "short_title", "acronym",
                     "issn_print", "issn_online", "publisher__name")
    ordering_fields = ("full_title", "founded_year", "created_at", "updated_at")
    ordering = ("full_title",)

    def get_queryset(self):
        queryset = super().get_queryset().filter(deleted_at__isnull=True)
        params = self.request.query_params
        if not _is_operator(self.request):
            queryset = queryset.filter(status=Journal.Status.ACTIVE)
        elif params.get("status"):
            queryset = queryset.filter(status=params["status"])
        featured = _flag(params.get("featured"))
        if featured is not None:
            queryset = queryset.filter(is_featured=featured)
        category = (params.get("category") or "").strip()
        if category:
            queryset = _with_category(queryset, category)
        return queryset

    def get_permissions(self):
        if self.action in {"editorial_board", "categories"}:
            return [permissions.AllowAny()]
        return super().get_permissions()

    @action(detail=False, methods=["get"])
    def categories(self, request):
        """Subject areas of public journals with how many journals carry each."""
        journals = Journal.objects.filter(
            deleted_at__isnull=True, status=Journal.Status.ACTIVE)
        counts = Counter(
            name
            for areas in journals.values_list("subject_area", flat=True)
            for name in set(areas or [])
            if name
        )
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0].lower()))
        return Response([{"name": name, "count": count} for name, count in ranked])

    def perform_destroy(self, instance):
        instance.soft_delete()
        logger.info("Journal %s soft-deleted by %s", instance.pk, self.request.user.pk)

    @action(detail=True, methods=["get"], url_path="editorial-board")
    def editorial_board(self, request, slug=None):
        journal = self.get_object()
        members = (
            EditorialAssignment.objects.filter(
                journal=journal,
                is_active=True,
                person__deleted_at__isnull=True,
                person__is_active=True,
            )
            .select_related("person")
            .order_by("display_order", "created_at", "id")
        )
        serializer = EditorialBoardMemberSerializer(members, many=True)
        return Response(serializer.data)


class OrganizationViewSet(viewsets.ModelViewSet):
    queryset = Organization.objects.all()
    serializer_class = OrganizationSerializer
    permission_classes = (IsOperatorOrReadOnly,)
    pagination_class = ClientPageNumberPagination
    lookup_value_regex = UUID_LOOKUP_REGEX
    filter_backends = (filters.SearchFilter, filters.OrderingFilter)
    search_fields = ("name", "acronym", "city", "country")
    ordering_fields = ("name", "created_at")
    ordering = ("name",)

    def get_queryset(self):
        queryset = super().get_queryset()
        if not _is_operator(self.request):
            queryset = queryset.filter(is_active=True)
        org_type = self.request.query_params.get("org_type")
        if org_type:
            queryset = queryset.filter(org_type=org_type)
        return queryset


class IndexingServiceViewSet(viewsets.ModelViewSet):
    queryset = IndexingService.objects.all()
    serializer_class = IndexingServiceSerializer
    permission_classes = (IsOperatorOrReadOnly,)
    pagination_class = ClientPageNumberPagination
    lookup_value_regex = UUID_LOOKUP_REGEX
    filter_backends = (filters.SearchFilter, filters.OrderingFilter)
    search_fields = ("service_name", "description", "coverage")
    ordering_fields = ("service_name", "created_at")
    ordering = ("service_name",)

    def get_queryset(self):
        queryset = super().get_queryset()
        if not _is_operator(self.request):
            queryset = queryset.filter(is_active=True)
        return queryset


class PersonViewSet(viewsets.ModelViewSet):
    queryset = Person.objects.filter(deleted_at__isnull=True)
    serializer_class = PersonSerializer
    permission_classes = (IsOperatorOrReadOnly,)
    pagination_class = ClientPageNumberPagination
    lookup_value_regex = UUID_LOOKUP_REGEX
    filter_backends = (filters.SearchFilter, filters.OrderingFilter)
    search_fields = ("full_name", "email", "affiliation", "position", "orcid")
    ordering_fields = ("last_name", "first_name", "created_at")
    ordering = ("last_name", "first_name")

    def get_queryset(self):
        queryset = super().get_queryset()
        if not _is_operator(self.request):
            queryset = queryset.filter(is_active=True, is_verified=True)
        return queryset

    def get_serializer_class(self):
        if self.action == "photo":
            return PersonPhotoSerializer
        return PersonSerializer

    def perform_destroy(self, instance):
        instance.soft_delete()
        logger.info("Person %s soft-deleted by %s", instance.pk, self.request.user.pk)

    @action(
        detail=True,
        methods=["post"],
        url_path="photo",
        parser_classes=[MultiPartParser, FormParser],
    )
    def photo(self, request, pk=None):
        person = self.get_object()
        serializer = PersonPhotoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = IdentitySession(account_id=request.user.pk, email=request.user.email)
        stored = get_document_store().upload(
            session, PHOTO_BUCKET, person.pk, serializer.validated_data["photo"], prefix="photo")
        person.photo_url = stored.url
        person.save(update_fields=["photo_url", "updated_at"])
        return Response(PersonSerializer(person, context=self.get_serializer_context()).data)


class EditorialAssignmentViewSet(viewsets.ModelViewSet):
    queryset = EditorialAssignment.objects.select_related("person", "journal")
    serializer_class = EditorialAssignmentSerializer
    permission_classes = (IsOperator,)
    pagination_class = ClientPageNumberPagination

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        journal = params.get("journal")
        if journal:
            journal_id = _uuid_or_none(journal)
            if journal_id is not None:
                queryset = queryset.filter(journal__pk=journal_id)
            else:
                queryset = queryset.filter(journal__slug=journal)
        if params.get("person"):
            queryset = queryset.filter(person__pk=_uuid_or_none(params["person"]))
        if params.get("role_type"):
            queryset = queryset.filter(role_type=params["role_type"])
        is_active = _flag(params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        data = dict(serializer.data)
        data["warning"] = serializer.active_role_warning()
        headers = self.get_success_headers(serializer.data)
        return Response(data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        assignment = self.get_object()
        assignment.toggle_active()
        serializer = self.get_serializer(assignment)
        return Response(serializer.data)

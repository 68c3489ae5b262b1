from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    DashboardView,
    HomeSummaryView,
    EditorialAssignmentViewSet,
    IndexingServiceViewSet,
    InvitationView,
    JournalViewSet,
    LoginView,
    LogoutView,
    OrganizationViewSet,
    PasswordResetRequestView,
    PasswordResetView,
    PendingApprovalViewSet,
    PersonViewSet,
    ProfileView,
    RegistrationView,
    SetPasswordView,
    UserTokenRefreshView,
    UserTokenVerifyView,
)

router = DefaultRouter()
router.register(r"adm/approvals", PendingApprovalViewSet, basename="approval")
router.register(r"journals", JournalViewSet, basename="journal")
router.register(r"organizations", OrganizationViewSet, basename="organization")
router.register(r"indexing-services", IndexingServiceViewSet,
                basename="indexing-service")
router.register(r"people", PersonViewSet, basename="person")
router.register(r"assignments", EditorialAssignmentViewSet,
                basename="assignment")

urlpatterns = [
    path("auth/register/", RegistrationView.as_view(), name="auth-register"),
    path("auth/login/", LoginView.as_view(), name="auth-login"),
    path("auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("auth/token/refresh/", UserTokenRefreshView.as_view(),
         name="auth-token-refresh"),
    path("auth/token/verify/", UserTokenVerifyView.as_view(),
         name="auth-token-verify"),
    path("auth/password/forgot/", PasswordResetRequestView.as_view(),
         name="auth-password-forgot"),
    path("auth/password/reset/", PasswordResetView.as_view(),
         name="auth-password-reset"),
    path("auth/set-password/", SetPasswordView.as_view(),
         name="auth-set-password"),
    path("home/summary/", HomeSummaryView.as_view(), name="home-summary"),
    path("me/", ProfileView.as_view(), name="user-profile"),
    path("adm/invitations/", InvitationView.as_view(), name="adm-invitations"),
    path("adm/dashboard/", DashboardView.as_view(), name="adm-dashboard"),
    path("", include(router.urls)),
]

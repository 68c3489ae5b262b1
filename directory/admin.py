from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import (
    EditorialAssignment,
    IndexingService,
    Journal,
    Organization,
    Person,
    User,
    UserToken,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    ordering = ("-date_joined",)
    list_display = ("email", "first_name", "last_name", "role",
                    "approval_status", "is_active", "date_joined")
    list_filter = ("role", "approval_status", "is_active", "workflow_state")
    search_fields = ("email", "first_name", "last_name")
    readonly_fields = ("approval_date", "approved_by", "workflow_state",
                       "identity_metadata", "last_login", "date_joined")
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (_("Personal info"), {"fields": ("first_name", "last_name", "phone", "cv_url", "person")}),
        (
            _("Lifecycle"),
            {"fields": ("role", "approval_status", "approval_date", "approved_by",
                        "registration_notes", "workflow_state", "identity_metadata")},
        ),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser",
                        "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2", "role", "is_staff", "is_superuser"),
            },
        ),
    )
    filter_horizontal = ("groups", "user_permissions")
    raw_id_fields = ("person",)


@admin.register(UserToken)
class UserTokenAdmin(admin.ModelAdmin):
    list_display = ("user", "token_type", "created_at",
                    "expires_at", "is_used")
    list_filter = ("token_type", "is_used", "created_at")
    search_fields = ("user__email",)
    readonly_fields = ("token",)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "acronym", "org_type", "country", "is_active")
    list_filter = ("org_type", "is_active", "country")
    search_fields = ("name", "acronym", "city")


@admin.register(IndexingService)
class IndexingServiceAdmin(admin.ModelAdmin):
    list_display = ("service_name", "coverage", "is_active")
    list_filter = ("is_active",)
    search_fields = ("service_name",)


class EditorialAssignmentInline(admin.TabularInline):
    model = EditorialAssignment
    extra = 0
    autocomplete_fields = ("person",)
    fields = ("person", "role", "role_type", "display_order", "is_active")


@admin.register(Journal)
class JournalAdmin(admin.ModelAdmin):
    list_display = ("full_title", "publisher", "status",
                    "is_featured", "deleted_at")
    list_filter = ("status", "journal_type", "is_featured", "country")
    search_fields = ("full_title", "short_title", "acronym",
                     "issn_print", "issn_online")
    readonly_fields = ("slug", "created_at", "updated_at")
    filter_horizontal = ("indexing_services",)
    inlines = (EditorialAssignmentInline,)


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "affiliation",
                    "is_verified", "is_active")
    list_filter = ("is_verified", "is_active", "is_admin")
    search_fields = ("full_name", "email", "affiliation", "orcid")
    readonly_fields = ("full_name", "created_at", "updated_at")
    raw_id_fields = ("user",)


@admin.register(EditorialAssignment)
class EditorialAssignmentAdmin(admin.ModelAdmin):
    list_display = ("person", "journal", "role", "role_type",
                    "display_order", "is_active")
    list_filter = ("role_type", "is_active", "journal")
    search_fields = ("person__full_name", "journal__full_title", "role")
    autocomplete_fields = ("person", "journal")

# Generated manually for the PAMJE journal directory
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("password", models.CharField(
                    max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(
                    blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4,
                 editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("first_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("phone", models.CharField(blank=True, max_length=50)),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("user", "User"),
                            ("researcher", "Researcher"),
                            ("reviewer", "Reviewer"),
                            ("editor", "Editor"),
                            ("admin", "Admin"),
                            ("super_admin", "Super admin"),
                        ],
                        default="user",
                        max_length=32,
                    ),
                ),
                (
                    "approval_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("is_active", models.BooleanField(default=False)),
                ("is_staff", models.BooleanField(default=False)),
                ("cv_url", models.CharField(blank=True, max_length=500)),
                ("approval_date", models.DateTimeField(blank=True, null=True)),
                ("registration_notes", models.TextField(blank=True)),
                (
                    "workflow_state",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("created_identity", "Identity created"),
                            ("uploaded_cv", "CV uploaded"),
                            ("profile_written", "Account profile written"),
                            ("person_written", "Person profile written"),
                            ("linked", "Linked"),
                        ],
                        max_length=32,
                    ),
                ),
                ("identity_metadata", models.JSONField(blank=True, default=dict)),
                ("date_joined", models.DateTimeField(
                    default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviewed_accounts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "ordering": ("-date_joined",),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("is_active", False), ("approval_status", "approved"), _connector="OR"),
                        name="active_account_is_approved",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserToken",
            fields=[
                ("id", models.BigAutoField(auto_created=True,
                 primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(
                    editable=False, max_length=128, unique=True)),
                (
                    "token_type",
                    models.CharField(
                        choices=[
                            ("activation", "Account activation"),
                            ("reset", "Password reset"),
                        ],
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField()),
                ("is_used", models.BooleanField(default=False)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tokens",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["token", "token_type"],
                                 name="directory_token_lookup_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4,
                 editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("acronym", models.CharField(blank=True, max_length=32)),
                (
                    "org_type",
                    models.CharField(
                        choices=[
                            ("publisher", "Publisher"),
                            ("society", "Society"),
                            ("institution", "Institution"),
                        ],
                        default="publisher",
                        max_length=16,
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                ("website_url", models.URLField(blank=True)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=128)),
                ("state", models.CharField(blank=True, max_length=128)),
                ("country", models.CharField(blank=True, max_length=128)),
                ("description", models.TextField(blank=True)),
                ("logo_url", models.URLField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="IndexingService",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4,
                 editable=False, primary_key=True, serialize=False)),
                ("service_name", models.CharField(max_length=255, unique=True)),
                ("service_url", models.URLField(blank=True)),
                ("description", models.TextField(blank=True)),
                ("coverage", models.CharField(blank=True, max_length=255)),
                ("logo_url", models.URLField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Indexing service",
                "verbose_name_plural": "Indexing services",
                "ordering": ("service_name",),
            },
        ),
        migrations.CreateModel(
            name="Journal",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4,
                 editable=False, primary_key=True, serialize=False)),
                ("full_title", models.CharField(max_length=255, unique=True)),
                ("slug", models.SlugField(editable=False,
                 max_length=255, unique=True)),
                ("short_title", models.CharField(blank=True, max_length=128)),
                ("acronym", models.CharField(blank=True, max_length=32)),
                ("description", models.TextField(blank=True)),
                ("aims_scope", models.TextField(blank=True)),
                ("issn_print", models.CharField(blank=True, max_length=9)),
                ("issn_online", models.CharField(blank=True, max_length=9)),
                ("publication_frequency", models.CharField(
                    blank=True, max_length=64)),
                (
                    "journal_type",
                    models.CharField(
                        choices=[
                            ("open_access", "Open access"),
                            ("subscription", "Subscription"),
                            ("hybrid", "Hybrid"),
                        ],
                        default="open_access",
                        max_length=16,
                    ),
                ),
                (
                    "peer_review_type",
                    models.CharField(
                        choices=[
                            ("double_blind", "Double blind"),
                            ("single_blind", "Single blind"),
                            ("open", "Open"),
                            ("editorial", "Editorial"),
                        ],
                        default="double_blind",
                        max_length=16,
                    ),
                ),
                ("website_url", models.URLField(blank=True)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                ("country", models.CharField(blank=True, max_length=128)),
                ("founded_year", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("ceased", "Ceased"),
                        ],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("is_featured", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "indexing_services",
                    models.ManyToManyField(
                        blank=True,
                        related_name="journals",
                        to="directory.indexingservice",
                    ),
                ),
                (
                    "publisher",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="published_journals",
                        to="directory.organization",
                    ),
                ),
                (
                    "society",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="society_journals",
                        to="directory.organization",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal",
                "verbose_name_plural": "Journals",
                "ordering": ("full_title",),
            },
        ),
        migrations.CreateModel(
            name="Person",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4,
                 editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(blank=True, max_length=64)),
                ("first_name", models.CharField(max_length=150)),
                ("middle_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(max_length=150)),
                ("suffix", models.CharField(blank=True, max_length=32)),
                ("full_name", models.CharField(editable=False, max_length=512)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                ("affiliation", models.CharField(blank=True, max_length=255)),
                ("position", models.CharField(blank=True, max_length=255)),
                ("department", models.CharField(blank=True, max_length=255)),
                ("specialization", models.JSONField(blank=True, default=list)),
                ("orcid", models.CharField(blank=True, max_length=19)),
                ("bio", models.TextField(blank=True)),
                ("photo_url", models.CharField(blank=True, max_length=500)),
                ("cv_url", models.CharField(blank=True, max_length=500)),
                ("is_admin", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("is_verified", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="person_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Person",
                "verbose_name_plural": "People",
                "ordering": ("last_name", "first_name"),
            },
        ),
        migrations.AddField(
            model_name="user",
            name="person",
            field=models.OneToOneField(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="account",
                to="directory.person",
            ),
        ),
        migrations.CreateModel(
            name="EditorialAssignment",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("role", models.CharField(max_length=255)),
                (
                    "role_type",
                    models.CharField(
                        choices=[
                            ("editor_in_chief", "Editor-in-chief"),
                            ("associate_editor", "Associate editor"),
                            ("managing_editor", "Managing editor"),
                            ("board_member", "Board member"),
                            ("reviewer", "Reviewer"),
                        ],
                        default="board_member",
                        max_length=32,
                    ),
                ),
                ("responsibilities", models.TextField(blank=True)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "journal",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="editorial_team",
                        to="directory.journal",
                    ),
                ),
                (
                    "person",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="directory.person",
                    ),
                ),
            ],
            options={
                "verbose_name": "Editorial assignment",
                "verbose_name_plural": "Editorial assignments",
                "ordering": ("display_order", "created_at", "id"),
                "indexes": [
                    models.Index(fields=["journal", "is_active"],
                                 name="directory_board_active_idx"),
                ],
            },
        ),
    ]

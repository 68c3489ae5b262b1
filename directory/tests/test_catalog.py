from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from directory.models import EditorialAssignment, Journal, Organization, Person, Role

from .factories import make_applicant, make_member, make_super_admin, photo_upload

User = get_user_model()


def _person(first_name="Ana", last_name="Reyes", **kwargs):
    kwargs.setdefault("is_active", True)
    kwargs.setdefault("is_verified", True)
    return Person.objects.create(first_name=first_name, last_name=last_name, **kwargs)


class JournalTests(APITestCase):
    def setUp(self):
        self.operator = make_member(email="ops@pamje.test", role=Role.ADMIN)
        self.publisher = Organization.objects.create(name="Philippine Medical Association")

    def test_operator_creates_journal_with_slug(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("journal-list"),
            {
                "full_title": "Philippine Journal of Surgery",
                "issn_print": "1234-567x",
                "publisher": str(self.publisher.pk),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["slug"], "philippine-journal-of-surgery")
        self.assertEqual(response.data["issn_print"], "1234-567X")
        self.assertEqual(response.data["publisher_name"], "Philippine Medical Association")

    def test_invalid_issn(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("journal-list"),
            {"full_title": "Acta Medica", "issn_online": "12345678"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("issn_online", response.data)

    def test_duplicate_titles_get_distinct_slugs(self):
        first = Journal.objects.create(full_title="Acta Medica")
        first.full_title = "Acta Medica Philippina"
        first.save()
        second = Journal.objects.create(full_title="Acta  Medica")
        self.assertEqual(first.slug, "acta-medica")
        self.assertEqual(second.slug, "acta-medica-2")

    def test_public_sees_only_active_journals(self):
        Journal.objects.create(full_title="Active Journal")
        Journal.objects.create(full_title="Ceased Journal", status=Journal.Status.CEASED)
        response = self.client.get(reverse("journal-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        titles = [row["full_title"] for row in response.data["results"]]
        self.assertEqual(titles, ["Active Journal"])

    def test_operator_filters_by_status(self):
        Journal.objects.create(full_title="Active Journal")
        Journal.objects.create(full_title="Ceased Journal", status=Journal.Status.CEASED)
        self.client.force_authenticate(user=self.operator)
        response = self.client.get(reverse("journal-list"), {"status": "ceased"})
        titles = [row["full_title"] for row in response.data["results"]]
        self.assertEqual(titles, ["Ceased Journal"])

    def test_public_cannot_write(self):
        response = self.client.post(
            reverse("journal-list"), {"full_title": "Sneaky"}, format="json")
        self.assertIn(response.status_code, {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN})
        self.assertFalse(Journal.objects.exists())

    def test_delete_is_soft(self):
        journal = Journal.objects.create(full_title="Old Journal")
        self.client.force_authenticate(user=self.operator)
        response = self.client.delete(reverse("journal-detail", args=[journal.slug]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        journal.refresh_from_db()
        self.assertIsNotNone(journal.deleted_at)
        response = self.client.get(reverse("journal-detail", args=[journal.slug]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_pagination_size_is_capped(self):
        response = self.client.get(reverse("journal-list"), {"page_size": 1000})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("count", response.data)

    def test_subject_area_is_cleaned(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("journal-list"),
            {"full_title": "Acta Medica", "subject_area": [" Cardiology ", "", "Cardiology", "Public  Health"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["subject_area"], ["Cardiology", "Public Health"])

    def test_subject_area_must_be_strings(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("journal-list"),
            {"full_title": "Acta Medica", "subject_area": "Cardiology"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("subject_area", response.data)

    def test_filter_by_category(self):
        Journal.objects.create(full_title="Heart Journal", subject_area=["Cardiology", "Surgery"])
        Journal.objects.create(full_title="Lung Journal", subject_area=["Pulmonology"])
        Journal.objects.create(full_title="Untagged Journal")
        response = self.client.get(reverse("journal-list"), {"category": "cardiology"})
        titles = [row["full_title"] for row in response.data["results"]]
        self.assertEqual(titles, ["Heart Journal"])

    def test_categories_are_counted_over_public_journals(self):
        Journal.objects.create(full_title="Heart Journal", subject_area=["Cardiology", "Surgery"])
        Journal.objects.create(full_title="Surgical Journal", subject_area=["Surgery"])
        Journal.objects.create(full_title="Lung Journal", subject_area=["Pulmonology"])
        Journal.objects.create(full_title="Ceased Journal", status=Journal.Status.CEASED,
                               subject_area=["Pulmonology", "Oncology"])
        removed = Journal.objects.create(full_title="Removed Journal", subject_area=["Oncology"])
        removed.soft_delete()

        response = self.client.get(reverse("journal-categories"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [
            {"name": "Surgery", "count": 2},
            {"name": "Cardiology", "count": 1},
            {"name": "Pulmonology", "count": 1},
        ])


class PersonTests(APITestCase):
    def setUp(self):
        self.operator = make_member(email="ops@pamje.test", role=Role.ADMIN)

    def test_full_name_is_composed_on_save(self):
        person = _person(title="Dr.", first_name="Juan", last_name="Dela Cruz", suffix="Jr.")
        person.refresh_from_db()
        self.assertEqual(person.full_name, "Dr. Juan Dela Cruz Jr.")

    def test_full_name_follows_partial_updates(self):
        person = _person()
        person.middle_name = "Luna"
        person.save(update_fields=["middle_name"])
        person.refresh_from_db()
        self.assertEqual(person.full_name, "Ana Luna Reyes")

    def test_public_sees_only_verified_active_people(self):
        _person(first_name="Visible")
        _person(first_name="Unverified", is_verified=False)
        make_applicant()
        response = self.client.get(reverse("person-list"))
        names = [row["first_name"] for row in response.data["results"]]
        self.assertEqual(names, ["Visible"])

    def test_operator_sees_everyone(self):
        _person(first_name="Visible")
        _person(first_name="Unverified", is_verified=False)
        self.client.force_authenticate(user=self.operator)
        response = self.client.get(reverse("person-list"))
        self.assertEqual(response.data["count"], 2)

    def test_orcid_is_validated(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("person-list"),
            {"first_name": "Jose", "last_name": "Rizal", "orcid": "1234"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("orcid", response.data)

    def test_operator_creates_person(self):
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("person-list"),
            {
                "title": "Dr.",
                "first_name": "Jose",
                "last_name": "Rizal",
                "orcid": "0000-0002-1825-009x",
                "specialization": ["Ophthalmology", " "],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["full_name"], "Dr. Jose Rizal")
        self.assertEqual(response.data["orcid"], "0000-0002-1825-009X")
        self.assertEqual(response.data["specialization"], ["Ophthalmology"])

    def test_photo_upload(self):
        person = _person()
        self.client.force_authenticate(user=self.operator)
        response = self.client.post(
            reverse("person-photo", args=[person.pk]),
            {"photo": photo_upload()},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["photo_url"].startswith(f"/media/photos/{person.pk}/"))
        person.refresh_from_db()
        self.assertEqual(person.photo_url, response.data["photo_url"])

    def test_soft_delete_hides_person(self):
        person = _person()
        self.client.force_authenticate(user=self.operator)
        response = self.client.delete(reverse("person-detail", args=[person.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        person.refresh_from_db()
        self.assertFalse(person.is_active)
        self.assertIsNotNone(person.deleted_at)


class EditorialAssignmentTests(APITestCase):
    def setUp(self):
        self.operator = make_member(email="ops@pamje.test", role=Role.ADMIN)
        self.journal = Journal.objects.create(full_title="Philippine Journal of Surgery")
        self.person = _person(title="Dr.", first_name="Juan", last_name="Dela Cruz")
        self.client.force_authenticate(user=self.operator)

    def _assign(self, role="Editor-in-Chief", **extra):
        payload = {
            "person": str(self.person.pk),
            "journal": str(self.journal.pk),
            "role": role,
        }
        payload.update(extra)
        return self.client.post(reverse("assignment-list"), payload, format="json")

    def test_first_assignment_has_no_warning(self):
        response = self._assign(role_type=EditorialAssignment.RoleType.EDITOR_IN_CHIEF)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data["warning"])
        self.assertEqual(response.data["person_name"], "Dr. Juan Dela Cruz")

    def test_second_active_role_warns_but_is_saved(self):
        self._assign()
        response = self._assign(role="Section Editor")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn("Editor-in-Chief", response.data["warning"])
        self.assertEqual(EditorialAssignment.objects.count(), 2)

    def test_end_date_before_start_date(self):
        response = self._assign(start_date="2024-05-01", end_date="2024-01-01")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_date", response.data)

    def test_toggle_active(self):
        assignment_id = self._assign().data["id"]
        response = self.client.post(reverse("assignment-toggle-active", args=[assignment_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_active"])

    def test_filter_by_journal_slug(self):
        self._assign()
        other = Journal.objects.create(full_title="Acta Medica")
        EditorialAssignment.objects.create(person=self.person, journal=other, role="Reviewer")
        response = self.client.get(reverse("assignment-list"), {"journal": self.journal.slug})
        self.assertEqual(response.data["count"], 1)

    def test_public_editorial_board_is_ordered_and_active_only(self):
        second = _person(first_name="Zed", last_name="Alonzo")
        EditorialAssignment.objects.create(
            person=second, journal=self.journal, role="Associate Editor", display_order=2)
        EditorialAssignment.objects.create(
            person=self.person, journal=self.journal, role="Editor-in-Chief", display_order=1)
        EditorialAssignment.objects.create(
            person=second, journal=self.journal, role="Former Editor", is_active=False)

        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("journal-editorial-board", args=[self.journal.slug]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["role"] for row in response.data],
                         ["Editor-in-Chief", "Associate Editor"])

    def test_members_cannot_manage_assignments(self):
        self.client.force_authenticate(user=make_member(email="reader@pamje.test"))
        response = self.client.get(reverse("assignment-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DashboardTests(APITestCase):
    def test_operator_dashboard_counts(self):
        make_applicant()
        Journal.objects.create(full_title="Active Journal")
        Journal.objects.create(full_title="Ceased Journal", status=Journal.Status.CEASED)
        self.client.force_authenticate(user=make_super_admin())
        response = self.client.get(reverse("adm-dashboard"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        metrics = response.data["metrics"]
        self.assertEqual(metrics["total_journals"], 2)
        self.assertEqual(metrics["active_journals"], 1)
        self.assertEqual(metrics["pending_registrations"], 1)

    def test_member_is_refused(self):
        self.client.force_authenticate(user=make_member())
        response = self.client.get(reverse("adm-dashboard"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class HomeSummaryTests(APITestCase):
    def test_public_counts(self):
        Journal.objects.create(full_title="Active Journal")
        Journal.objects.create(full_title="Ceased Journal", status=Journal.Status.CEASED)
        Journal.objects.create(full_title="Removed Journal").soft_delete()
        make_member(email="reviewer@pamje.test", role=Role.REVIEWER)
        pending = make_applicant(email="pending@pamje.test")
        User.objects.filter(pk=pending.pk).update(role=Role.REVIEWER)

        journal = Journal.objects.get(full_title="Active Journal")
        chief, associate, member = _person(), _person(first_name="Ben"), _person(first_name="Cy")
        EditorialAssignment.objects.create(
            person=chief, journal=journal, role="Editor-in-Chief",
            role_type=EditorialAssignment.RoleType.EDITOR_IN_CHIEF)
        EditorialAssignment.objects.create(
            person=associate, journal=journal, role="Associate Editor",
            role_type=EditorialAssignment.RoleType.ASSOCIATE_EDITOR)
        EditorialAssignment.objects.create(
            person=associate, journal=journal, role="Former Editor",
            role_type=EditorialAssignment.RoleType.EDITOR_IN_CHIEF, is_active=False)
        EditorialAssignment.objects.create(person=member, journal=journal, role="Board Member")

        response = self.client.get(reverse("home-summary"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["metrics"], {
            "active_journals": 1,
            "total_journals": 2,
            "peer_reviewers": 1,
            "editors": 2,
        })


class ProfileTests(APITestCase):
    def setUp(self):
        self.member = make_member(email="reader@pamje.test")
        self.person = _person(user=self.member, email="reader@pamje.test")
        self.member.person = self.person
        self.member.save(update_fields=["person"])
        self.client.force_authenticate(user=self.member)

    def test_profile_includes_person(self):
        response = self.client.get(reverse("user-profile"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["person"]["full_name"], "Ana Reyes")

    def test_patch_updates_account_and_person(self):
        response = self.client.patch(
            reverse("user-profile"),
            {"phone": " +63 917 000 0000 ", "affiliation": "UP Manila",
             "specialization": ["Cardiology", " "]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.person.refresh_from_db()
        self.assertEqual(self.member.phone, "+63 917 000 0000")
        self.assertEqual(self.person.affiliation, "UP Manila")
        self.assertEqual(self.person.specialization, ["Cardiology"])

    def test_patch_rejects_bad_orcid(self):
        response = self.client.patch(reverse("user-profile"), {"orcid": "nope"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("orcid", response.data)

    def test_anonymous_is_refused(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("user-profile"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

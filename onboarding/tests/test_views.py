import json

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from accounts.models import Institution, Programme, UserProfile
from core.cookies import PENDING_ROLE_COOKIE_NAME

from .factories import institution_fields, student_fields


class OnboardingViewTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='ama', email='ama@example.com', password='pw-12345')
        self.client.force_login(self.user)

    def post(self, name, payload=None):
        return self.client.post(
            reverse(name),
            data=json.dumps(payload or {}),
            content_type='application/json',
        )

    def fill(self, fields, names):
        for name in names:
            response = self.post('onboarding_update_field', {'name': name, 'value': fields[name]})
            self.assertEqual(response.status_code, 200)

    def test_anonymous_requests_get_401(self):
        self.client.logout()
        self.assertEqual(self.client.get(reverse('onboarding_state')).status_code, 401)
        self.assertEqual(self.post('onboarding_next').status_code, 401)

    def test_without_hint_the_role_prompt_is_shown(self):
        body = self.client.get(reverse('onboarding_state')).json()
        self.assertIsNone(body['session'])
        self.assertEqual(body['roles'], ['student', 'instructor'])

    def test_institution_cannot_be_chosen_from_prompt(self):
        response = self.post('onboarding_choose_role', {'role': 'institution'})
        self.assertEqual(response.status_code, 400)

    def test_operations_without_session_conflict(self):
        response = self.post('onboarding_next')
        self.assertEqual(response.status_code, 409)

    def test_invalid_step_reports_field_errors(self):
        self.post('onboarding_choose_role', {'role': 'student'})
        response = self.post('onboarding_next')
        self.assertEqual(response.status_code, 400)
        self.assertIn('firstName', response.json()['errors'])
        self.assertEqual(response.json()['session']['current_step'], 1)

    def test_student_onboarding_writes_profile(self):
        institution = Institution.objects.create(name='University of Ghana')
        programme = Programme.objects.create(institution=institution, name='BSc Computer Science')
        fields = student_fields(institutionId=str(institution.id), programmeId=str(programme.id))

        self.post('onboarding_choose_role', {'role': 'student'})
        self.fill(fields, ('firstName', 'lastName', 'gender', 'institutionId'))
        self.assertEqual(self.post('onboarding_next').status_code, 200)
        self.fill(fields, ('currentLevel', 'yearOfAdmission', 'expectedGraduationYear', 'modeOfStudy', 'programmeId'))
        self.assertEqual(self.post('onboarding_next').status_code, 200)
        for name in ('studyGoals', 'learningStyle', 'studySchedule'):
            for value in fields[name]:
                self.post('onboarding_toggle_field', {'name': name, 'value': value})
        response = self.post('onboarding_next')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['session']['state'], 'completed')
        self.user.refresh_from_db()
        profile = UserProfile.objects.get(user=self.user)
        self.assertEqual(profile.role, 'student')
        self.assertTrue(profile.onboarding_completed)
        self.assertEqual(profile.programme, programme)
        self.assertEqual(profile.details['studyGoals'], fields['studyGoals'])
        self.assertEqual(self.user.first_name, 'Ama')

        body = self.client.get(reverse('onboarding_state')).json()
        self.assertTrue(body['completed'])
        self.assertEqual(body['role'], 'student')

    def test_failed_write_stays_submitting_and_can_be_retried(self):
        fields = student_fields(institutionId='00000000-0000-0000-0000-000000000000')
        self.post('onboarding_choose_role', {'role': 'student'})
        self.fill(fields, ('firstName', 'lastName', 'gender', 'institutionId'))
        self.post('onboarding_next')
        self.fill(fields, ('currentLevel', 'yearOfAdmission', 'expectedGraduationYear', 'modeOfStudy', 'programmeId'))
        self.post('onboarding_next')
        self.fill(fields, ('studyGoals', 'learningStyle', 'studySchedule'))

        response = self.post('onboarding_next')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['session']['state'], 'submitting')
        self.assertEqual(response.json()['message'], 'Invalid institution selected')

        self.post('onboarding_update_field', {'name': 'institutionId', 'value': 'no-institution'})
        self.post('onboarding_update_field', {'name': 'programmeId', 'value': ''})
        # An emptied field sends the user back to the step that owns it.
        response = self.post('onboarding_submit')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['session']['current_step'], 2)

    def test_institution_signup_hint_is_consumed_once(self):
        response = self.client.get(reverse('institution_signup'))
        self.assertRedirects(response, reverse('account_signup'), fetch_redirect_response=False)
        self.assertEqual(response.cookies[PENDING_ROLE_COOKIE_NAME].value, 'institution')

        response = self.client.get(reverse('onboarding_state'))
        self.assertEqual(response.json()['session']['role'], 'institution')
        self.assertEqual(response.cookies[PENDING_ROLE_COOKIE_NAME].value, '')
        # With the session gone, the spent hint no longer picks a variant.
        self.post('onboarding_cancel')
        body = self.client.get(reverse('onboarding_state')).json()
        self.assertIsNone(body['session'])

    def test_institution_flow_creates_owned_institution(self):
        self.client.get(reverse('institution_signup'))
        self.client.get(reverse('onboarding_state'))
        fields = institution_fields()

        self.fill(fields, ('firstName', 'lastName'))
        self.post('onboarding_next')
        self.fill(fields, ('institutionName', 'institutionType'))
        self.post('onboarding_select_range', {'name': 'numberOfStudents', 'bucket': '1,000-5,000 students'})
        self.post('onboarding_next')
        self.fill(fields, ('departments', 'institutionAddress', 'institutionPhone'))
        self.post('onboarding_next')
        self.fill(fields, ('bio',))
        response = self.post('onboarding_next')

        self.assertEqual(response.status_code, 200)
        payload = response.json()['payload']
        self.assertEqual(payload, {**fields, 'role': 'institution'})
        institution = Institution.objects.get(owner=self.user)
        self.assertEqual(institution.name, 'Accra Technical University')
        self.assertEqual(UserProfile.objects.get(user=self.user).institution, institution)

    def test_cancel_discards_session(self):
        self.post('onboarding_choose_role', {'role': 'instructor'})
        response = self.post('onboarding_cancel')
        self.assertEqual(response.json()['session']['state'], 'aborted')

        body = self.client.get(reverse('onboarding_state')).json()
        self.assertIsNone(body['session'])

    def test_malformed_number_edit_is_recoverable(self):
        self.post('onboarding_choose_role', {'role': 'student'})
        for raw in ('--5', '²'):
            response = self.post('onboarding_update_field', {'name': 'currentLevel', 'value': raw})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()['session']['fields']['currentLevel'], raw)

    def test_malformed_bucket_is_rejected_without_error_page(self):
        self.client.get(reverse('institution_signup'))
        self.client.get(reverse('onboarding_state'))
        response = self.post('onboarding_select_range', {'name': 'numberOfStudents', 'bucket': '--1'})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['status'], 'error')

    def test_unknown_hint_cookie_is_cleared(self):
        self.client.cookies[PENDING_ROLE_COOKIE_NAME] = 'wizard'
        response = self.client.get(reverse('onboarding_state'))

        self.assertIsNone(response.json()['session'])
        self.assertEqual(response.cookies[PENDING_ROLE_COOKIE_NAME].value, '')

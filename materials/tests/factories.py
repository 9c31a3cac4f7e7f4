from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile

from accounts.models import get_profile
from materials.models import Course, Material


def make_user(username, role='student', onboarded=True, **extra):
    user = User.objects.create_user(username=username, email=f'{username}@example.com', password='pw-12345', **extra)
    profile = get_profile(user)
    profile.role = role if onboarded else ''
    profile.onboarding_completed = onboarded
    profile.save()
    return user


def make_course(**overrides):
    values = {'title': 'Data Structures', 'code': 'CSCD 201'}
    values.update(overrides)
    return Course.objects.create(**values)


def make_material(owner, course, **overrides):
    values = {
        'title': 'Week 1 notes',
        'description': 'Arrays, linked lists and complexity.',
        'material_type': 'lecture_notes',
        'file_url': 'uploads/materials/week1.txt',
        'file_type': 'txt',
        'file_size': 42,
        'original_filename': 'week1.txt',
    }
    values.update(overrides)
    return Material.objects.create(owner=owner, course=course, **values)


def text_upload(name='notes.txt', content=b'Binary search halves the interval each step.', content_type='text/plain'):
    return SimpleUploadedFile(name, content, content_type=content_type)


def metadata(course, **overrides):
    values = {
        'title': 'Binary search notes',
        'description': 'Worked examples of binary search.',
        'material_type': 'lecture_notes',
        'course_id': str(course.id),
    }
    values.update(overrides)
    return values

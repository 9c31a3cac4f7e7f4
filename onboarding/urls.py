# onboarding/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.onboarding_state, name='onboarding_state'),
    path('role/', views.choose_role, name='onboarding_choose_role'),
    path('field/', views.update_field, name='onboarding_update_field'),
    path('toggle/', views.toggle_field, name='onboarding_toggle_field'),
    path('range/', views.select_range, name='onboarding_select_range'),
    path('next/', views.next_step, name='onboarding_next'),
    path('back/', views.previous_step, name='onboarding_back'),
    path('submit/', views.submit, name='onboarding_submit'),
    path('cancel/', views.cancel, name='onboarding_cancel'),
    path('institution-signup/', views.institution_signup, name='institution_signup'),
]

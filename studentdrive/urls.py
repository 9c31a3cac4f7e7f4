# studentdrive/urls.py
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('allauth.urls')),
    path('onboarding/', include('onboarding.urls')),
    path('materials/', include('materials.urls')),
]

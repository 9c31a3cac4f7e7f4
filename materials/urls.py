# materials/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('upload/', views.upload_material, name='upload_material'),
    path('<uuid:material_id>/', views.material_detail, name='material_detail'),
    path('moderation/', views.moderation_queue, name='moderation_queue'),
    path('moderation/<uuid:material_id>/', views.moderate_material, name='moderate_material'),
]

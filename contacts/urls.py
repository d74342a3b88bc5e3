from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'entities', views.EntityViewSet, basename='entity')

app_name = 'contacts'

urlpatterns = [
    path('', include(router.urls)),
]

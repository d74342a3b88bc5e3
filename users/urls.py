from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AuthView, UserViewSet

router = SimpleRouter()
router.register(r'users', UserViewSet, basename='user')

app_name = 'users'

urlpatterns = [
    path('', AuthView.as_view(), name='auth'),
    path('', include(router.urls)),
]

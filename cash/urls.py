from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'transactions', views.CashTransactionViewSet, basename='cashtransaction')

app_name = 'cash'

urlpatterns = [
    path('', include(router.urls)),
]

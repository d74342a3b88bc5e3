# website/urls.py
from django.urls import path
from . import views

app_name = 'website'

urlpatterns = [
    path('', views.DashboardView.as_view(), name='dashboard'),
    path('insights/', views.StockInsightsView.as_view(), name='insights'),
    path('export/products/', views.ProductsExportView.as_view(), name='export-products'),
    path('export/invoices/', views.InvoicesExportView.as_view(), name='export-invoices'),
]

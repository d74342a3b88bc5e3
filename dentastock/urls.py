from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # Auth
    path('api/auth/', include('users.urls')),

    # JSON API
    path('api/inventory/', include('inventory.urls')),
    path('api/contacts/', include('contacts.urls')),
    path('api/sales/', include('sales.urls')),
    path('api/cash/', include('cash.urls')),

    # Dashboard, insights, exports
    path('api/dashboard/', include('website.urls')),
]

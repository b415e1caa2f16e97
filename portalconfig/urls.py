"""
URL configuration for the trademark case portal.

Every JSON endpoint lives under /api/; the Django admin stays at /admin/.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # --- API URLS ---
    path('api/', include('users.urls')),
    path('api/', include('cases.urls')),
    path('api/', include('communication.urls')),
]

"""
URL configuration for the bizops tax data project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.1/topics/http/urls/
"""

from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from core.health import health_check

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # API Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger"),
    # API
    path("api/v1/", include("apps.api.urls", namespace="api")),
    # Health check
    path("health/", health_check, name="health"),
]

# Debug toolbar (development only)
if settings.DEBUG:
    try:
        import debug_toolbar
        from django.urls import URLResolver

        debug_patterns: list[URLResolver] = [
            path("__debug__/", include(debug_toolbar.urls)),
        ]
        urlpatterns = [*debug_patterns, *urlpatterns]
    except ImportError:
        pass

"""URL configuration for the ITAM project."""

from django.contrib import admin
from django.urls import include, path

from itam.views import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("accounts/", include("accounts.urls")),
    path("", include("assets.urls")),
]

handler403 = "itam.views.permission_denied"

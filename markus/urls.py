"""URL configuration for the markus project."""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("groupings.api.urls")),
    path("", include("autotest.api.urls")),
]

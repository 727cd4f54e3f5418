"""URL configuration for the API application."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.api.views import ChannelsView, SyncAccountViewSet

app_name = "api"

router = DefaultRouter()
router.register(r"accounts", SyncAccountViewSet, basename="account")

urlpatterns = [
    path("", include(router.urls)),
    path("channels/", ChannelsView.as_view(), name="channels"),
]

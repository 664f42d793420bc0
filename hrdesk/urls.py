from django.urls import path

from workspace.api import api

urlpatterns = [
    path("api/", api.urls),
]

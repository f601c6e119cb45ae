###################################################################################
# URL configuration for the member registry project.
#
# The registry is operated through the Django admin; the lifecycle engine has
# no public views of its own.
###################################################################################

from django.contrib import admin
from django.urls import path

from utils.health import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
]

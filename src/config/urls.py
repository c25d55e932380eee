from django.urls import include, path

urlpatterns = [
    path("", include("trip_safety.urls")),
]

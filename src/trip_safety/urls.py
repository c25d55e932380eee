from django.urls import path

from trip_safety import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/fuel/analysis", views.fuel_analysis_view, name="fuel-analysis"),
    path("api/v1/fuel/tracking", views.fuel_tracking_view, name="fuel-tracking"),
    path("api/v1/fatigue", views.fatigue_view, name="fatigue"),
]

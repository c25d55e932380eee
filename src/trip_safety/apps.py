from django.apps import AppConfig


class TripSafetyConfig(AppConfig):
    name = "trip_safety"
    verbose_name = "Trip safety & fuel-range engine"

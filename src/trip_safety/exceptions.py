class TripSafetyError(Exception):
    """Base exception for trip safety engine errors."""


class InvalidRouteGeometryError(TripSafetyError):
    """Raised when an encoded route geometry cannot be decoded."""


class InvalidFuelProfileError(TripSafetyError):
    """Raised when a vehicle fuel profile breaks critical < warn < range."""

"""Geographic coordinate value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoCoordinate:
    """Latitude/longitude pair in decimal degrees."""

    latitude: float = 0.0
    longitude: float = 0.0

    def __post_init__(self) -> None:
        """Validate coordinate ranges."""
        if not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90 degrees")
        if not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180 degrees")

    @property
    def is_unset(self) -> bool:
        """Quick-captured leads start at (0, 0) until geocoded."""
        return self.latitude == 0.0 and self.longitude == 0.0

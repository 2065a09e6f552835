import math
from collections.abc import Iterable

import numpy as np

from streetmap.app.protocols import Projection
from streetmap.domain.entities.geography import Point2D, as_array

EARTH_RADIUS_M = 6_378_137.0  # WGS84 equatorial radius


class LocalProjection(Projection):
    """
    Equirectangular tangent plane around the map origin.
    +x points east, +y points north; `units_per_meter` scales local units
    (e.g. 100 for centimeters).
    """

    def __init__(self, origin_lon: float, origin_lat: float, *, units_per_meter: float = 1.0):
        if units_per_meter <= 0:
            raise ValueError("units_per_meter must be > 0")
        self.lon0, self.lat0, self.upm = origin_lon, origin_lat, units_per_meter
        self._cos_lat0 = math.cos(math.radians(origin_lat))

    def to_geographic(self, points: Iterable[Point2D]) -> list[tuple[float, float]]:
        arr = as_array(points) / self.upm
        if arr.shape[0] == 0:
            return []
        lat = self.lat0 + np.degrees(arr[:, 1] / EARTH_RADIUS_M)
        lon = self.lon0 + np.degrees(arr[:, 0] / (EARTH_RADIUS_M * self._cos_lat0))
        return [(float(a), float(b)) for a, b in zip(lon, lat, strict=True)]

    def to_local(self, lon: float, lat: float) -> Point2D:
        x = math.radians(lon - self.lon0) * EARTH_RADIUS_M * self._cos_lat0
        y = math.radians(lat - self.lat0) * EARTH_RADIUS_M
        return Point2D(x * self.upm, y * self.upm)

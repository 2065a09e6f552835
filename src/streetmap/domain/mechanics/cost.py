# domain/mechanics/cost.py
from dataclasses import dataclass

from streetmap.app.protocols import CostModel
from streetmap.domain.entities.ways import Road, RoadType


@dataclass(frozen=True)
class RoadProfile:
    speed: float  # km/h
    traffic_factor: float


# Tweakables for connection cost estimation. Not calibrated; swap the model if
# turns, lanes or real speed limits matter.
DEFAULT_PROFILES: dict[RoadType, RoadProfile] = {
    RoadType.HIGHWAY: RoadProfile(110.0, 0.0),
    RoadType.MAJOR_ROAD: RoadProfile(70.0, 0.2),
    RoadType.STREET: RoadProfile(40.0, 1.0),
    RoadType.BRIDGE: RoadProfile(40.0, 1.0),
    RoadType.OTHER: RoadProfile(40.0, 1.0),
}


def check_profiles(max_speed: float, scale: float, profiles: dict[RoadType, RoadProfile]) -> None:
    """Raise ValueError unless every multiplier stays >= 1, i.e. costs never undercut distance."""
    if max_speed <= 0:
        raise ValueError("max_speed must be > 0")
    if scale < 0:
        raise ValueError("scale must be >= 0")
    negative = sorted(t.value for t, p in profiles.items() if p.speed < 0 or p.traffic_factor < 0)
    if negative:
        raise ValueError(f"negative speed or traffic_factor for: {negative}")
    too_fast = sorted(t.value for t, p in profiles.items() if p.speed > max_speed)
    if too_fast:
        raise ValueError(f"profile speed exceeds max_speed {max_speed} for: {too_fast}")


class RoadTypeCostModel(CostModel):
    """distance * (1 + (1 - speed/max_speed) * scale * (0.5 + traffic * 0.5))"""

    def __init__(
        self,
        *,
        max_speed: float = 120.0,
        scale: float = 15.0,
        profiles: dict[RoadType, RoadProfile] | None = None,
    ):
        self.max_speed, self.scale = max_speed, scale
        self.profiles = {**DEFAULT_PROFILES, **(profiles or {})}
        check_profiles(max_speed, scale, self.profiles)

    def multiplier(self, road_type: RoadType) -> float:
        p = self.profiles[road_type]
        speed_scale = 1.0 - p.speed / self.max_speed
        return 1.0 + speed_scale * self.scale * (0.5 + p.traffic_factor * 0.5)

    def cost(self, road: Road, distance: float) -> float:
        return distance * self.multiplier(road.road_type)


class DistanceCostModel(CostModel):
    def cost(self, road: Road, distance: float) -> float:
        return distance


DEFAULT_COST_MODEL = RoadTypeCostModel()

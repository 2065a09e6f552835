# runtime/registries.py
from collections.abc import Callable
from typing import Any

from streetmap.app.protocols import CostModel, Projection
from streetmap.config.models import (
    CostModelUnion,
    DistanceCostModelModel,
    ProjectionModel,
    RoadTypeCostModelModel,
)
from streetmap.domain.mechanics.cost import DistanceCostModel, RoadProfile, RoadTypeCostModel
from streetmap.domain.mechanics.projection import LocalProjection

CostModelFactory = Callable[[CostModelUnion, dict], CostModel]

_cost_registry: dict[str, CostModelFactory] = {}


# ------------------- Cost model registries ---------------------------


def register_cost_model(kind: str):
    def deco(fn: CostModelFactory):
        _cost_registry[kind] = fn
        return fn

    return deco


def make_cost_model(cfg: CostModelUnion, deps: dict[str, Any] | None = None) -> CostModel:
    try:
        factory = _cost_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown cost model kind {cfg.kind!r}") from None
    return factory(cfg, deps or {})


@register_cost_model("road_type")
def _road_type(cfg: RoadTypeCostModelModel, deps: dict) -> CostModel:
    profiles = {
        t: RoadProfile(speed=p.speed, traffic_factor=p.traffic_factor)
        for t, p in cfg.profiles.items()
    }
    return RoadTypeCostModel(max_speed=cfg.max_speed, scale=cfg.scale, profiles=profiles)


@register_cost_model("distance")
def _distance(cfg: DistanceCostModelModel, deps: dict) -> CostModel:
    return DistanceCostModel()


# ------------------- Projection ---------------------------


def make_projection(cfg: ProjectionModel, *, origin_lon: float, origin_lat: float) -> Projection:
    return LocalProjection(origin_lon, origin_lat, units_per_meter=cfg.units_per_meter)

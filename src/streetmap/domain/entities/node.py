# domain/entities/node.py
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from streetmap.domain.entities.geography import Point2D


@dataclass(frozen=True)
class RoadRef:
    road_index: int
    road_point_index: int  # where on that road's point list the node sits


@dataclass(frozen=True)
class RailwayRef:
    railway_index: int
    railway_point_index: int


@dataclass(frozen=True)
class Node:
    """Intersection or terminus shared by one or more roads/railways."""

    location: Point2D
    road_refs: tuple[RoadRef, ...] = ()
    railway_refs: tuple[RailwayRef, ...] = ()
    # read-only view; compared but not hashed, so nodes (and stores) stay hashable
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

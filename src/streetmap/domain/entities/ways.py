# domain/entities/ways.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from streetmap.domain.entities.geography import BoundingBox, Point2D


class RoadType(Enum):
    STREET = "street"  # small road or residential street
    MAJOR_ROAD = "major_road"  # major road or minor state highway
    HIGHWAY = "highway"
    BRIDGE = "bridge"
    OTHER = "other"  # path, bus route, etc.


class RailwayType(Enum):
    RAIL = "rail"
    LIGHT_RAIL = "light_rail"
    SUBWAY = "subway"
    TRAM = "tram"
    OTHER_RAILWAY = "other_railway"  # monorail, abandoned, funicular, ...


class MiscWayType(Enum):
    UNKNOWN = "unknown"
    LEISURE = "leisure"  # parks, pitches
    NATURAL = "natural"  # wood, beach, water
    LAND_USE = "land_use"  # grass, meadow, forest


@dataclass(frozen=True)
class Link:
    """Traffic link identifier; equal (and hashed) on both id and direction."""

    link_id: int = 0
    link_dir: str = "T"


@dataclass(frozen=True)
class Trace:
    """An ordered run of links, e.g. a recorded traffic trace."""

    links: tuple[Link, ...] = ()
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    guid: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class Road:
    name: str
    road_type: RoadType
    points: tuple[Point2D, ...]
    # parallel to points; None where the point is not an intersection
    node_indices: tuple[int | None, ...]
    bounds: BoundingBox
    is_one_way: bool = False
    speed_limit: int = 0
    distance: float = 0.0
    link: Link = Link()
    tmc: str = ""


@dataclass(frozen=True)
class Railway:
    name: str
    railway_type: RailwayType
    points: tuple[Point2D, ...]
    node_indices: tuple[int | None, ...]
    bounds: BoundingBox


@dataclass(frozen=True)
class Building:
    name: str
    points: tuple[Point2D, ...]  # closed perimeter polygon
    bounds: BoundingBox
    height: float = 0.0  # meters, 0 when unknown
    levels: int = 0


@dataclass(frozen=True)
class MiscWay:
    name: str
    category: str
    way_type: MiscWayType
    points: tuple[Point2D, ...]
    bounds: BoundingBox
    is_closed: bool = False

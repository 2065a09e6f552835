from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from streetmap.domain.entities.geography import Point2D
from streetmap.domain.entities.ways import Road


# ------------- Routing support --------------------
@runtime_checkable
class CostModel(Protocol):
    """
    Responsibilities:
      • Turn the along-road distance of one connection into a routing cost.
      • Stay a pure function of (road, distance) so costs can be compared.
    Costs are only used to rank alternatives; units are whatever distance uses.
    """

    def cost(self, road: Road, distance: float) -> float: ...


@runtime_checkable
class Projection(Protocol):
    """Maps local projected coordinates to (longitude, latitude) and back."""

    def to_geographic(self, points: Iterable[Point2D]) -> list[tuple[float, float]]: ...
    def to_local(self, lon: float, lat: float) -> Point2D: ...


# ------------- Diagnostics --------------------
@runtime_checkable
class Sink(Protocol):
    def write(self, ev) -> None: ...

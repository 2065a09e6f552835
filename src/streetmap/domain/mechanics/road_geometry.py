# domain/mechanics/road_geometry.py
"""
Geometric queries along a single road or railway polyline.

Every query takes the way record itself (anything with parallel `points` and
`node_indices` sequences) and works in point indices, never node ids: the same
node can appear at several points of one road (loops), so a node id alone does
not say *where* on the road something is.

`index` is only used to give failures a useful location.
"""

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from streetmap.domain.entities.geography import Point2D, polyline_cumulative_lengths
from streetmap.domain.entities.ways import Railway
from streetmap.domain.errors import InvalidGraphState, OutOfRange


class Polyline(Protocol):
    points: tuple[Point2D, ...]
    node_indices: tuple[int | None, ...]


@dataclass(frozen=True)
class NodeBracket:
    """Nearest nodes on either side of a point/position; a missing side is None."""

    earlier: int | None
    earlier_position: float | None
    later: int | None
    later_position: float | None


def _kind(way: Polyline) -> str:
    return "railway" if isinstance(way, Railway) else "road"


def _check_point_index(way: Polyline, point_index: int, index: int | None) -> None:
    n = len(way.points)
    if not 0 <= point_index < n:
        raise OutOfRange(
            f"point index {point_index} outside [0, {n - 1}]", entity=_kind(way), index=index
        )


def cumulative_lengths(way: Polyline) -> np.ndarray:
    return polyline_cumulative_lengths(way.points)


# ------------- distances & positions -----------------------


def compute_distance_between_points(
    way: Polyline, point_index_a: int, point_index_b: int
) -> float:
    """Distance along the way between two point indices (order does not matter).

    Indices are clamped to the polyline and are not required to carry a node.
    """
    n = len(way.points)
    lo = max(0, min(point_index_a, point_index_b))
    hi = min(n - 1, max(point_index_a, point_index_b))
    if hi <= lo:
        return 0.0
    cum = cumulative_lengths(way)
    return float(cum[hi] - cum[lo])


def compute_length(way: Polyline) -> float:
    return compute_distance_between_points(way, 0, len(way.points) - 1)


def find_position_along_road_for_point(
    way: Polyline, point_index: int, *, index: int | None = None
) -> float:
    _check_point_index(way, point_index, index)
    return float(cumulative_lengths(way)[point_index])


def make_location_along_road(
    way: Polyline, position_along_road: float, *, index: int | None = None
) -> Point2D:
    """Interpolated location `position_along_road` units from the way's first point."""
    pts = way.points
    if not pts:
        raise InvalidGraphState("polyline has no points", entity=_kind(way), index=index)
    cum = cumulative_lengths(way)
    total = float(cum[-1])
    if position_along_road < 0.0 or position_along_road > total:
        raise OutOfRange(
            f"position {position_along_road} outside [0, {total}]", entity=_kind(way), index=index
        )
    if len(pts) == 1:
        return pts[0]

    for i in range(len(pts) - 1):
        nxt = float(cum[i + 1])
        if nxt >= position_along_road:
            if nxt == position_along_road:
                return pts[i + 1]
            seg = nxt - float(cum[i])
            if seg <= 0.0:
                return pts[i]
            alpha = (position_along_road - float(cum[i])) / seg
            return pts[i].lerp(pts[i + 1], alpha)
    return pts[-1]  # unreachable: position <= total was checked above


# ------------- node scans -----------------------


def get_node_at_point_index_or_earlier(
    way: Polyline, point_index: int, *, index: int | None = None
) -> tuple[int, int]:
    """(node id, point index) of the node at `point_index` or the nearest one before it."""
    _check_point_index(way, point_index, index)
    for i in range(point_index, -1, -1):
        node = way.node_indices[i]
        if node is not None:
            return node, i
    raise InvalidGraphState(
        f"no node at or before point {point_index}", entity=_kind(way), index=index
    )


def get_node_at_point_index_or_later(
    way: Polyline, point_index: int, *, index: int | None = None
) -> tuple[int, int]:
    """(node id, point index) of the node at `point_index` or the nearest one after it."""
    _check_point_index(way, point_index, index)
    for i in range(point_index, len(way.points)):
        node = way.node_indices[i]
        if node is not None:
            return node, i
    raise InvalidGraphState(
        f"no node at or after point {point_index}", entity=_kind(way), index=index
    )


def find_earlier_and_later_nodes(
    way: Polyline, point_index: int, *, index: int | None = None
) -> NodeBracket:
    """Nodes strictly before and strictly after `point_index`; a road end yields None."""
    _check_point_index(way, point_index, index)
    cum = cumulative_lengths(way)
    earlier = earlier_pos = later = later_pos = None
    for i in range(point_index - 1, -1, -1):
        if way.node_indices[i] is not None:
            earlier, earlier_pos = way.node_indices[i], float(cum[i])
            break
    for i in range(point_index + 1, len(way.points)):
        if way.node_indices[i] is not None:
            later, later_pos = way.node_indices[i], float(cum[i])
            break
    return NodeBracket(earlier, earlier_pos, later, later_pos)


def find_earlier_and_later_nodes_for_position(
    way: Polyline, position_along_road: float, *, index: int | None = None
) -> NodeBracket:
    """Nodes bracketing a distance along the way.

    The earlier node is the last node seen before the segment that reaches
    `position_along_road`; the later node is the first node whose position is
    at or past it. Both must exist.
    """
    cum = cumulative_lengths(way)
    total = float(cum[-1]) if cum.size else 0.0
    if position_along_road < 0.0 or position_along_road > total:
        raise OutOfRange(
            f"position {position_along_road} outside [0, {total}]", entity=_kind(way), index=index
        )

    earlier = earlier_pos = later = later_pos = None
    for i in range(len(way.points) - 1):
        if way.node_indices[i] is not None:
            earlier, earlier_pos = way.node_indices[i], float(cum[i])
        nxt = float(cum[i + 1])
        if nxt >= position_along_road and way.node_indices[i + 1] is not None:
            later, later_pos = way.node_indices[i + 1], nxt
            break

    if earlier is None or later is None:
        side = "earlier" if earlier is None else "later"
        raise InvalidGraphState(
            f"no {side} node around position {position_along_road}",
            entity=_kind(way),
            index=index,
        )
    return NodeBracket(earlier, earlier_pos, later, later_pos)

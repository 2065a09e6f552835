# domain/validation.py
"""Graph invariant checks shared by the builder and by loaders of finished stores."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from streetmap.domain.entities.geography import Point2D, polyline_cumulative_lengths
from streetmap.io.diagnostics import (
    LENGTH_MISMATCH,
    MISSING_ENDPOINT_NODE,
    NODE_OUT_OF_RANGE,
    REF_MISMATCH,
    TOO_FEW_POINTS,
    ZERO_LENGTH_SEGMENT,
    Diagnostic,
    ZeroLengthSegment,
)

if TYPE_CHECKING:
    from streetmap.domain.store import StreetMap


def check_way_structure(
    entity: str,
    index: int,
    points: Sequence[Point2D],
    node_indices: Sequence[int | None],
    node_count: int,
) -> list[Diagnostic]:
    """Errors that make a way unusable by any query."""
    out: list[Diagnostic] = []
    if len(points) != len(node_indices):
        out.append(
            Diagnostic(
                "error",
                LENGTH_MISMATCH,
                entity,
                index,
                f"{len(points)} points but {len(node_indices)} node indices",
            )
        )
    if len(points) < 2:
        out.append(
            Diagnostic("error", TOO_FEW_POINTS, entity, index, f"{len(points)} point(s), need 2")
        )
    bad = [n for n in node_indices if n is not None and not 0 <= n < node_count]
    if bad:
        out.append(
            Diagnostic(
                "error",
                NODE_OUT_OF_RANGE,
                entity,
                index,
                f"node indices {bad} outside [0, {node_count - 1}]",
            )
        )
    return out


def missing_endpoints(node_indices: Sequence[int | None]) -> list[int]:
    if not node_indices:
        return []
    last = len(node_indices) - 1
    return [p for p in sorted({0, last}) if node_indices[p] is None]


def zero_length_segments(
    entity: str, index: int, points: Sequence[Point2D], node_indices: Sequence[int | None]
) -> list[Diagnostic]:
    """Adjacent nodes on a way sitting at the same distance along it."""
    cum = polyline_cumulative_lengths(points)
    out: list[Diagnostic] = []
    prev = None
    for i, n in enumerate(node_indices):
        if n is None:
            continue
        if prev is not None and cum[i] - cum[prev] <= 0.0:
            out.append(
                ZeroLengthSegment(
                    "warning",
                    ZERO_LENGTH_SEGMENT,
                    entity,
                    index,
                    f"nodes at points {prev} and {i} coincide",
                    point_index_a=prev,
                    point_index_b=i,
                )
            )
        prev = i
    return out


def validate_street_map(smap: StreetMap) -> list[Diagnostic]:
    """Re-check every graph invariant of a finished store; empty means well formed."""
    out: list[Diagnostic] = []
    n_nodes = len(smap.nodes)
    for kind, ways in (("road", smap.roads), ("railway", smap.railways)):
        for i, w in enumerate(ways):
            structural = check_way_structure(kind, i, w.points, w.node_indices, n_nodes)
            out.extend(structural)
            if structural:
                continue
            for p in missing_endpoints(w.node_indices):
                out.append(
                    Diagnostic(
                        "error", MISSING_ENDPOINT_NODE, kind, i, f"no node at endpoint point {p}"
                    )
                )

    # node -> way refs and way -> node indices must mirror each other
    road_back: set[tuple[int, int, int]] = set()
    for rid, r in enumerate(smap.roads):
        for p, n in enumerate(r.node_indices):
            if n is not None:
                road_back.add((n, rid, p))
    rail_back: set[tuple[int, int, int]] = set()
    for wid, w in enumerate(smap.railways):
        for p, n in enumerate(w.node_indices):
            if n is not None:
                rail_back.add((n, wid, p))

    road_fwd: set[tuple[int, int, int]] = set()
    rail_fwd: set[tuple[int, int, int]] = set()
    for nid, node in enumerate(smap.nodes):
        road_fwd.update((nid, ref.road_index, ref.road_point_index) for ref in node.road_refs)
        rail_fwd.update(
            (nid, ref.railway_index, ref.railway_point_index) for ref in node.railway_refs
        )

    for kind, fwd, back in (("road", road_fwd, road_back), ("railway", rail_fwd, rail_back)):
        for nid, wid, p in sorted(fwd - back):
            out.append(
                Diagnostic(
                    "error",
                    REF_MISMATCH,
                    "node",
                    nid,
                    f"ref to {kind} {wid} point {p} is not mirrored by that {kind}",
                )
            )
        for nid, wid, p in sorted(back - fwd):
            out.append(
                Diagnostic(
                    "error",
                    REF_MISMATCH,
                    kind,
                    wid,
                    f"point {p} names node {nid} but the node has no matching ref",
                )
            )
    return out

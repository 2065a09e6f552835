# domain/builder.py
from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from streetmap.config.models import BuildModel
from streetmap.domain.entities.geography import BoundingBox, Pt, to_point
from streetmap.domain.entities.node import Node, RailwayRef, RoadRef
from streetmap.domain.entities.ways import (
    Building,
    Link,
    MiscWay,
    MiscWayType,
    Railway,
    RailwayType,
    Road,
    RoadType,
)
from streetmap.domain.errors import MalformedEntityError
from streetmap.domain.hooks import BuildHooks, NoopBuildHooks
from streetmap.domain.store import StreetMap
from streetmap.domain.validation import (
    check_way_structure,
    missing_endpoints,
    zero_length_segments,
)
from streetmap.io.diagnostics import MISSING_ENDPOINT_NODE, Diagnostic, EndpointSynthesized


def _node_index(n: int | None) -> int | None:
    # -1 is the conventional "no node here" marker of upstream importers
    return None if n is None or n == -1 else int(n)


@dataclass
class _PendingWay:
    kind: str  # "road" | "railway"
    fields: dict[str, Any]
    points: tuple
    node_indices: list[int | None]
    bounds: BoundingBox | None


@dataclass
class BuildReport:
    dropped: dict[str, list[int]] = field(default_factory=lambda: {"road": [], "railway": []})
    # input index -> store id for every admitted way
    road_ids: dict[int, int] = field(default_factory=dict)
    railway_ids: dict[int, int] = field(default_factory=dict)
    synthesized_nodes: list[int] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class StreetMapBuilder:
    """
    The single bulk-load phase of a street map.

    Loaders add nodes and ways in any order, then call build() once. Ways are
    addressed by their *input* index until then; build() may drop malformed
    ways, so final road/railway ids are reported in `report`. Node ids are
    final as soon as add_node returns.
    """

    def __init__(
        self,
        cfg: BuildModel | None = None,
        *,
        hooks: BuildHooks | None = None,
        origin_longitude: float = 0.0,
        origin_latitude: float = 0.0,
    ):
        self.cfg = cfg or BuildModel()
        self.hooks = hooks or NoopBuildHooks()
        self.origin_longitude, self.origin_latitude = origin_longitude, origin_latitude
        self.bounds: BoundingBox | None = None

        self._nodes: list[tuple[Pt, dict[str, str]]] = []
        self._by_location: dict[tuple[float, float], int] = {}
        self._ways: dict[str, list[_PendingWay]] = {"road": [], "railway": []}
        self._buildings: list[Building] = []
        self._misc: list[MiscWay] = []
        self._built = False
        self.report = BuildReport()

    # --------------- input -----------------------------

    def _check_open(self):
        if self._built:
            raise RuntimeError("builder already built; start a new one")

    def add_node(self, location: Pt, *, tags: Mapping[str, str] | None = None) -> int:
        self._check_open()
        p = to_point(location)
        self._nodes.append((p, dict(tags or {})))
        nid = len(self._nodes) - 1
        self._by_location.setdefault((p.x, p.y), nid)
        return nid

    def node_at(self, location: Pt) -> int:
        """Id of the node first added at exactly `location`, adding one if there is none."""
        p = to_point(location)
        nid = self._by_location.get((p.x, p.y))
        return self.add_node(p) if nid is None else nid

    def add_road(
        self,
        name: str,
        points: Iterable[Pt],
        node_indices: Iterable[int | None],
        *,
        road_type: RoadType = RoadType.STREET,
        is_one_way: bool = False,
        speed_limit: int = 0,
        distance: float = 0.0,
        link: Link | None = None,
        tmc: str = "",
        bounds: BoundingBox | None = None,
    ) -> int:
        fields = dict(
            name=name,
            road_type=road_type,
            is_one_way=is_one_way,
            speed_limit=speed_limit,
            distance=distance,
            link=link or Link(),
            tmc=tmc,
        )
        return self._add_way("road", fields, points, node_indices, bounds)

    def add_road_through(self, name: str, points: Sequence[Pt], **kw) -> int:
        """Add a road with a node at every point, shared with any node already there."""
        return self.add_road(name, points, [self.node_at(p) for p in points], **kw)

    def add_railway(
        self,
        name: str,
        points: Iterable[Pt],
        node_indices: Iterable[int | None],
        *,
        railway_type: RailwayType = RailwayType.RAIL,
        bounds: BoundingBox | None = None,
    ) -> int:
        fields = dict(name=name, railway_type=railway_type)
        return self._add_way("railway", fields, points, node_indices, bounds)

    def _add_way(self, kind, fields, points, node_indices, bounds) -> int:
        self._check_open()
        pending = self._ways[kind]
        pending.append(
            _PendingWay(
                kind=kind,
                fields=fields,
                points=tuple(to_point(p) for p in points),
                node_indices=[_node_index(n) for n in node_indices],
                bounds=bounds,
            )
        )
        return len(pending) - 1

    def add_building(
        self,
        name: str,
        points: Iterable[Pt],
        *,
        height: float = 0.0,
        levels: int = 0,
        bounds: BoundingBox | None = None,
    ) -> int:
        self._check_open()
        pts = tuple(to_point(p) for p in points)
        self._buildings.append(
            Building(name, pts, self._bounds_for(pts, bounds), height=height, levels=levels)
        )
        return len(self._buildings) - 1

    def add_misc_way(
        self,
        name: str,
        points: Iterable[Pt],
        *,
        category: str = "",
        way_type: MiscWayType = MiscWayType.UNKNOWN,
        is_closed: bool = False,
        bounds: BoundingBox | None = None,
    ) -> int:
        self._check_open()
        pts = tuple(to_point(p) for p in points)
        self._misc.append(
            MiscWay(name, category, way_type, pts, self._bounds_for(pts, bounds), is_closed)
        )
        return len(self._misc) - 1

    def _bounds_for(self, pts, bounds: BoundingBox | None) -> BoundingBox:
        if bounds is not None:
            return bounds
        return BoundingBox.from_points(pts) if self.cfg.compute_bounds else BoundingBox.empty()

    # --------------- build -----------------------------

    def _report(self, diag: Diagnostic) -> None:
        self.report.diagnostics.append(diag)
        self.hooks.diagnostic(diag)

    def _reject(self, diag: Diagnostic, policy: str) -> None:
        """Apply a drop/error policy to a way-level error diagnostic."""
        if policy == "error":
            diag.action = "rejected"
            self._report(diag)
            self.hooks.error(reason=diag.code, entity=diag.entity, index=diag.index)
            raise MalformedEntityError(
                diag.message, entity=diag.entity, index=diag.index, code=diag.code
            )
        diag.action = "dropped"
        self._report(diag)

    def _admit(self, kind: str, i: int, w: _PendingWay, nodes: list) -> list[int | None] | None:
        """Node indices to store for an admitted way (endpoints filled in), or None if dropped.

        Synthesized endpoint nodes are appended to `nodes`, the node list of
        the build in progress; pending input is left untouched.
        """
        structural = check_way_structure(kind, i, w.points, w.node_indices, len(self._nodes))
        if structural:
            for d in structural[:-1]:
                d.action = "rejected" if self.cfg.on_malformed == "error" else "dropped"
                self._report(d)
            self._reject(structural[-1], self.cfg.on_malformed)
            return None

        node_indices = list(w.node_indices)
        missing = missing_endpoints(node_indices)
        if missing and self.cfg.endpoint_policy != "synthesize":
            diag = Diagnostic(
                "error",
                MISSING_ENDPOINT_NODE,
                kind,
                i,
                f"no node at endpoint point(s) {missing}",
            )
            self._reject(diag, self.cfg.endpoint_policy)
            return None
        for p in missing:
            nodes.append((w.points[p], {"synthesized": "endpoint"}))
            nid = len(nodes) - 1
            node_indices[p] = nid
            self.report.synthesized_nodes.append(nid)
            self._report(
                EndpointSynthesized(
                    "warning",
                    MISSING_ENDPOINT_NODE,
                    kind,
                    i,
                    f"added terminus node {nid} at point {p}",
                    action="synthesized",
                    point_index=p,
                    node_id=nid,
                )
            )

        if self.cfg.warn_zero_length:
            for d in zero_length_segments(kind, i, w.points, node_indices):
                self._report(d)
        return node_indices

    def build(self) -> StreetMap:
        """Freeze everything added so far into a StreetMap.

        A build that raises (policy "error") leaves the builder open and its
        input untouched; `report` then only keeps the diagnostics that led to
        the failure, so the caller can fix the cause and build again.
        """
        self._check_open()
        t0 = time.perf_counter()
        self.report = BuildReport()
        self.hooks.build_start(
            roads=len(self._ways["road"]),
            nodes=len(self._nodes),
            railways=len(self._ways["railway"]),
            buildings=len(self._buildings),
            misc_ways=len(self._misc),
        )

        node_list = list(self._nodes)
        roads: list[Road] = []
        railways: list[Railway] = []
        try:
            for kind, out, ids in (
                ("road", roads, self.report.road_ids),
                ("railway", railways, self.report.railway_ids),
            ):
                for i, w in enumerate(self._ways[kind]):
                    node_indices = self._admit(kind, i, w, node_list)
                    if node_indices is None:
                        self.report.dropped[kind].append(i)
                        continue
                    ids[i] = len(out)
                    bounds = self._bounds_for(w.points, w.bounds)
                    rec_type = Road if kind == "road" else Railway
                    out.append(
                        rec_type(
                            points=w.points,
                            node_indices=tuple(node_indices),
                            bounds=bounds,
                            **w.fields,
                        )
                    )
        except MalformedEntityError:
            self.report = BuildReport(diagnostics=self.report.diagnostics)
            raise

        # derive node -> way refs in (way id, point index) order
        road_refs: list[list[RoadRef]] = [[] for _ in node_list]
        for rid, r in enumerate(roads):
            for p, n in enumerate(r.node_indices):
                if n is not None:
                    road_refs[n].append(RoadRef(rid, p))
        rail_refs: list[list[RailwayRef]] = [[] for _ in node_list]
        for wid, w in enumerate(railways):
            for p, n in enumerate(w.node_indices):
                if n is not None:
                    rail_refs[n].append(RailwayRef(wid, p))

        nodes = tuple(
            Node(
                location=loc,
                road_refs=tuple(road_refs[i]),
                railway_refs=tuple(rail_refs[i]),
                tags=tags,
            )
            for i, (loc, tags) in enumerate(node_list)
        )

        bounds = self.bounds
        if bounds is None:
            bounds = BoundingBox.empty()
            for e in (*roads, *self._buildings):
                bounds = bounds.union(e.bounds)

        smap = StreetMap(
            roads=tuple(roads),
            nodes=nodes,
            railways=tuple(railways),
            buildings=tuple(self._buildings),
            misc_ways=tuple(self._misc),
            bounds=bounds,
            origin_longitude=self.origin_longitude,
            origin_latitude=self.origin_latitude,
        )
        self._built = True
        self.hooks.build_end(
            summary=smap.summary(),
            dropped=sum(len(v) for v in self.report.dropped.values()),
            synthesized=len(self.report.synthesized_nodes),
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return smap

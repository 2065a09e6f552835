# streetmap/app/session.py
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from streetmap.app.protocols import CostModel, Projection, Sink
from streetmap.config.models import StreetMapModel
from streetmap.domain.builder import BuildReport, StreetMapBuilder
from streetmap.domain.entities.geography import Point2D
from streetmap.domain.entities.ids import NodeId, RoadId
from streetmap.domain.errors import StreetMapError
from streetmap.domain.hooks import NoopBuildHooks
from streetmap.domain.mechanics import connectivity as conn
from streetmap.domain.mechanics.road_geometry import compute_length
from streetmap.domain.store import StreetMap
from streetmap.domain.validation import validate_street_map
from streetmap.io.build_logging import BuildLogging
from streetmap.io.config import load_config
from streetmap.io.diagnostics import QUERY_FAILED, QuerySkipped
from streetmap.io.recorder import MemorySink, Recorder
from streetmap.runtime.registries import make_cost_model, make_projection

Loader = Callable[[StreetMapBuilder], None]


@dataclass
class MapSession:
    """A built store plus the policies every query in a session shares."""

    config: StreetMapModel
    store: StreetMap
    cost_model: CostModel
    projection: Projection
    recorder: Recorder
    report: BuildReport | None = None

    @property
    def diagnostics(self) -> list:
        return self.recorder.events

    def _skip(self, entity: str, index: int, query: str, exc: StreetMapError) -> None:
        self.recorder.emit(
            QuerySkipped(
                "error",
                QUERY_FAILED,
                exc.entity or entity,
                exc.index if exc.index is not None else index,
                str(exc),
                action="skipped",
                query=query,
                error=type(exc).__name__,
            )
        )

    # ------------- batch queries (malformed entities are skipped) ----------

    def road_lengths(self) -> dict[RoadId, float]:
        return {RoadId(i): compute_length(r) for i, r in enumerate(self.store.roads)}

    def dead_ends(self) -> list[NodeId]:
        out = []
        for i in range(len(self.store.nodes)):
            try:
                if conn.is_dead_end(self.store, i):
                    out.append(NodeId(i))
            except StreetMapError as exc:
                self._skip("node", i, "is_dead_end", exc)
        return out

    def connection_table(self, traveling_forward: bool) -> dict[NodeId, list[conn.Connection]]:
        table: dict[NodeId, list[conn.Connection]] = {}
        for i in range(len(self.store.nodes)):
            try:
                table[NodeId(i)] = list(conn.iter_connections(self.store, i, traveling_forward))
            except StreetMapError as exc:
                self._skip("node", i, "iter_connections", exc)
        return table

    # ------------- single queries with the session's cost model ----------

    def connection_costs(
        self, node_id: int, traveling_forward: bool
    ) -> list[tuple[conn.Connection, float]]:
        return [
            (c, conn.connection_cost(self.store, c, self.cost_model))
            for c in conn.iter_connections(self.store, node_id, traveling_forward)
        ]

    def shortest_cost_road(
        self, node_id: int, other_node_id: int, traveling_forward: bool
    ) -> tuple[RoadId, int]:
        return conn.get_shortest_cost_road_to_node(
            self.store, node_id, other_node_id, traveling_forward, cost_model=self.cost_model
        )

    def to_geographic(self, points: Sequence[Point2D]) -> list[tuple[float, float]]:
        return self.projection.to_geographic(points)


def _recorder(sinks: Sequence[Sink] | None) -> Recorder:
    return Recorder(*(sinks or (MemorySink(),)))


def build(
    cfg: StreetMapModel | Mapping | str | Path | None,
    load: Loader,
    *,
    origin: tuple[float, float] = (0.0, 0.0),
    sinks: Sequence[Sink] | None = None,
    use_logging: bool = True,
) -> MapSession:
    # 0) Validate config
    model = load_config(cfg)

    # 1) Diagnostics & hooks
    recorder = _recorder(sinks)
    hooks = (
        BuildLogging(
            map_name=model.name,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
            recorder=recorder,
        )
        if use_logging
        else _RecordingHooks(recorder)
    )

    # 2) Bulk load through the external loader, then freeze
    builder = StreetMapBuilder(
        model.build, hooks=hooks, origin_longitude=origin[0], origin_latitude=origin[1]
    )
    load(builder)
    store = builder.build()

    # 3) Query policies
    return MapSession(
        config=model,
        store=store,
        cost_model=make_cost_model(model.cost),
        projection=make_projection(
            model.projection, origin_lon=store.origin_longitude, origin_lat=store.origin_latitude
        ),
        recorder=recorder,
        report=builder.report,
    )


def open_session(
    cfg: StreetMapModel | Mapping | str | Path | None,
    store: StreetMap,
    *,
    sinks: Sequence[Sink] | None = None,
) -> MapSession:
    """Wrap an already built store (e.g. from a snapshot), reporting any broken invariant."""
    model = load_config(cfg)
    recorder = _recorder(sinks)
    for diag in validate_street_map(store):
        recorder.emit(diag)
    return MapSession(
        config=model,
        store=store,
        cost_model=make_cost_model(model.cost),
        projection=make_projection(
            model.projection, origin_lon=store.origin_longitude, origin_lat=store.origin_latitude
        ),
        recorder=recorder,
    )


class _RecordingHooks(NoopBuildHooks):
    """Silent hooks that still hand diagnostics to the recorder."""

    def __init__(self, recorder: Recorder):
        self.recorder = recorder

    def diagnostic(self, diag):
        self.recorder.emit(diag)

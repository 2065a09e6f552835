# io/build_logging.py
import json
import logging
import sys
from dataclasses import asdict

from streetmap.domain.hooks import NoopBuildHooks
from streetmap.io.diagnostics import Diagnostic
from streetmap.io.recorder import Recorder


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: level, msg, logger, then the structured `extra` payload.

    `static` fields (e.g. the map name) are stamped on every line; payload keys win on clash.
    """

    def __init__(self, static: dict | None = None):
        super().__init__()
        self.static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        payload = {"level": record.levelname, "msg": record.getMessage(), "logger": record.name}
        payload.update(self.static)
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        # enums (road types, ...) and points are not JSON natives
        return json.dumps(payload, default=str)


def _default_json_logger(name="streetmap", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)
        h.setFormatter(JsonLineFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class BuildLogging(NoopBuildHooks):
    """
    Structured logs for the load phase, and the hand-off of every diagnostic
    to the recorder so the loader can flag or drop what was reported.
    """

    def __init__(
        self,
        map_name: str = "map",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.map_name, self.debug, self.sample_every = map_name, debug, max(1, sample_every)
        self.recorder = recorder
        self.log = logger or _default_json_logger(level=level)
        self._warnings = 0

    def _emit(self, level: str, msg: str, **extra):
        payload = {"map": self.map_name}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    # --------------------------------------------------------

    def build_start(self, *, roads, nodes, railways, buildings, misc_ways):
        self._emit(
            "INFO",
            "build_start",
            roads=roads,
            nodes=nodes,
            railways=railways,
            buildings=buildings,
            misc_ways=misc_ways,
        )

    def build_end(self, *, summary, dropped, synthesized, wall_ms):
        self._emit(
            "INFO",
            "build_end",
            **summary,
            dropped=dropped,
            synthesized=synthesized,
            warnings=self._warnings,
            wall_ms=round(wall_ms, 3),
        )

    def diagnostic(self, diag: Diagnostic):
        if self.recorder:
            self.recorder.emit(diag)
        if diag.severity == "error":
            self._emit("ERROR", diag.code, **asdict(diag))
            return
        # warnings can be numerous on real maps; sample them unless debugging
        self._warnings += 1
        if self.debug or (self._warnings % self.sample_every) == 0:
            self._emit("WARNING", diag.code, **asdict(diag))

    def error(self, *, reason: str, **kw):
        self._emit("ERROR", "build_error", reason=reason, **kw)

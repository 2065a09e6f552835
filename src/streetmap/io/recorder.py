# streetmap/io/recorder.py
import json
import logging
import sys
from dataclasses import asdict

from streetmap.app.protocols import Sink

log = logging.getLogger("streetmap.recorder")


class JsonlSink:
    """Diagnostics as JSON lines, tagged with their record type so readers can rebuild them."""

    def __init__(self, fp=sys.stdout, *, flush: bool = False):
        self.fp, self.flush = fp, flush

    def write(self, ev) -> None:
        row = {"type": type(ev).__name__, **asdict(ev)}
        self.fp.write(json.dumps(row, default=str) + "\n")
        if self.flush:
            self.fp.flush()


class MemorySink:
    def __init__(self):
        self.events: list = []

    def write(self, ev) -> None:
        self.events.append(ev)

    def with_code(self, code: str) -> list:
        return [e for e in self.events if getattr(e, "code", None) == code]


class Recorder:
    """Fans diagnostics out to sinks; a broken sink is logged, never fatal to a load."""

    def __init__(self, *sinks: Sink):
        self.sinks = sinks or (MemorySink(),)

    def emit(self, ev) -> None:
        for s in self.sinks:
            try:
                s.write(ev)
            except Exception:
                log.exception("diagnostic sink %s failed", type(s).__name__)

    @property
    def events(self) -> list:
        """Events held by the in-memory sinks, in emission order."""
        out: list = []
        for s in self.sinks:
            if isinstance(s, MemorySink):
                out.extend(s.events)
        return out

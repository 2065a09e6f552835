# domain/hooks.py
from typing import Protocol

from streetmap.io.diagnostics import Diagnostic


class BuildHooks(Protocol):
    def build_start(self, *, roads, nodes, railways, buildings, misc_ways): ...
    def build_end(self, *, summary, dropped, synthesized, wall_ms): ...
    def diagnostic(self, diag: Diagnostic): ...
    def error(self, *, reason: str, **kw): ...


class NoopBuildHooks:
    def build_start(self, **_):
        pass

    def build_end(self, **_):
        pass

    def diagnostic(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass

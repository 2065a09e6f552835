# streetmap/io/diagnostics.py

from dataclasses import dataclass
from typing import Literal

Severity = Literal["warning", "error"]
Action = Literal["kept", "dropped", "rejected", "synthesized", "skipped"]

# stable codes
LENGTH_MISMATCH = "length_mismatch"
TOO_FEW_POINTS = "too_few_points"
NODE_OUT_OF_RANGE = "node_out_of_range"
MISSING_ENDPOINT_NODE = "missing_endpoint_node"
ZERO_LENGTH_SEGMENT = "zero_length_segment"
REF_MISMATCH = "ref_mismatch"
QUERY_FAILED = "query_failed"


# Base record for the malformed-entity channel (not an exception!)
@dataclass
class Diagnostic:
    severity: Severity
    code: str  # one of the constants above
    entity: str  # "road" | "railway" | "node" | ...
    index: int  # input index during a build, store id afterwards
    message: str
    action: Action = "kept"


@dataclass
class EndpointSynthesized(Diagnostic):
    point_index: int = 0
    node_id: int = -1


@dataclass
class ZeroLengthSegment(Diagnostic):
    point_index_a: int = 0
    point_index_b: int = 0


@dataclass
class QuerySkipped(Diagnostic):
    query: str = ""
    error: str = ""

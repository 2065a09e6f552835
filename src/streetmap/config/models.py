from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from streetmap.domain.entities.ways import RoadType
from streetmap.domain.mechanics.cost import DEFAULT_PROFILES, RoadProfile, check_profiles


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1  # log every n-th warning diagnostic

    @field_validator("sample_every")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("sample_every must be >= 1")
        return v


# ----------------- BUILD ---------------------


class BuildModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # what to do with a road/railway whose first or last point has no node
    endpoint_policy: Literal["synthesize", "drop", "error"] = "synthesize"
    # what to do with any other malformed way
    on_malformed: Literal["drop", "error"] = "drop"
    warn_zero_length: bool = True
    compute_bounds: bool = True


# ----------------- COST MODELS ---------------------


class RoadProfileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    speed: float  # km/h
    traffic_factor: float = 0.0

    @field_validator("speed", "traffic_factor")
    @classmethod
    def _finite_nonneg(cls, v: float, info: ValidationInfo) -> float:
        if not isfinite(v) or v < 0:
            raise ValueError(f"{info.field_name} must be finite and >= 0")
        return v


class RoadTypeCostModelModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["road_type"] = "road_type"
    max_speed: float = 120.0
    scale: float = 15.0
    # partial overrides; unspecified road types keep the built-in profile
    profiles: dict[RoadType, RoadProfileModel] = Field(default_factory=dict)

    @field_validator("profiles", mode="before")
    @classmethod
    def _names_to_types(cls, v):
        # accept "HIGHWAY" / "highway" as well as enum values
        if not isinstance(v, dict):
            return v
        out = {}
        for k, p in v.items():
            if isinstance(k, str) and k.upper() in RoadType.__members__:
                k = RoadType[k.upper()]
            out[k] = p
        return out

    @model_validator(mode="after")
    def _check_speeds(self):
        # built-in profiles count too: lowering max_speed alone can undercut them
        merged = {
            **DEFAULT_PROFILES,
            **{t: RoadProfile(p.speed, p.traffic_factor) for t, p in self.profiles.items()},
        }
        check_profiles(self.max_speed, self.scale, merged)
        return self


class DistanceCostModelModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["distance"] = "distance"


CostModelUnion = Annotated[
    RoadTypeCostModelModel | DistanceCostModelModel,
    Field(discriminator="kind"),
]


# ----------------- PROJECTION ---------------------


class ProjectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    units_per_meter: float = 1.0  # 100.0 for centimeter maps

    @field_validator("units_per_meter")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("units_per_meter must be > 0")
        return v


# ------------------------------------------------------------------


class StreetMapModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "map"
    log: LogModel = LogModel()
    build: BuildModel = BuildModel()
    cost: CostModelUnion = Field(default_factory=RoadTypeCostModelModel)
    projection: ProjectionModel = ProjectionModel()

# src/streetmap/io/config.py
import json
from collections.abc import Mapping
from pathlib import Path

from streetmap.config.models import StreetMapModel


def load_config(source: StreetMapModel | Mapping | str | Path | None = None) -> StreetMapModel:
    """Validate a config given as a model, a mapping or a path to a JSON file."""
    if source is None:
        return StreetMapModel()
    if isinstance(source, StreetMapModel):
        return source
    if isinstance(source, Mapping):
        return StreetMapModel.model_validate(source)
    return StreetMapModel.model_validate_json(Path(source).read_text(encoding="utf-8"))


def dump_config(model: StreetMapModel) -> str:
    return json.dumps(model.model_dump(mode="json"), indent=2)

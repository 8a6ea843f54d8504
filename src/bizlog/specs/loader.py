"""Loader for operation spec YAML files.

Example::

    version: 1
    operations:
      shop.orders.OrderService.update:
        - success: "Updated order {{order.title}}"
          type: ORDER
          biz_no: "{{order.order_no}}"
          detail: "{_DIFF{old, order}}"
          action_type: UPDATE
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from bizlog.errors import ConfigurationError
from bizlog.specs.models import SpecFile
from bizlog.specs.registry import SpecRegistry


def load_specs(path: str) -> SpecRegistry:
    spec_path = Path(path)
    if not spec_path.exists():
        raise FileNotFoundError(f"Spec file not found: {spec_path}")
    with spec_path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid spec file {spec_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid spec file {spec_path}: top level must be a mapping")
    try:
        spec_file = SpecFile.from_yaml(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid spec file {spec_path}: {exc}") from exc

    registry = SpecRegistry()
    for key, entries in spec_file.operations.items():
        try:
            registry.add(key, *(entry.to_spec() for entry in entries))
        except ConfigurationError as exc:
            raise ConfigurationError(f"Invalid spec for {key}: {exc}") from exc
    return registry

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from bizlog.domain.operations import MethodRef
from bizlog.errors import ConfigurationError
from bizlog.specs.loader import load_specs
from bizlog.specs.registry import SpecRegistry

UPDATE = MethodRef("shop.orders.OrderService", "update")


def _write(tmp_path: Path, data) -> str:
    path = tmp_path / "specs.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def test_load_specs_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_specs(str(tmp_path / "missing.yaml"))


def test_load_specs_success(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "version": 1,
            "operations": {
                UPDATE.key: [
                    {
                        "success": "Updated order {{order.title}}",
                        "type": "ORDER",
                        "biz_no": "{{order.order_no}}",
                        "detail": "{_DIFF{old, order}}",
                        "action_type": "UPDATE",
                    },
                    {"fail": "Update failed: {{_errorMsg}}", "type": "ORDER", "biz_no": "1"},
                ],
                "shop.orders.OrderService.import_all": {
                    "success": "Imported {{_item}}",
                    "type": "ORDER",
                    "biz_no": "{{_item}}",
                    "is_batch": True,
                    "batch_collection": "items",
                },
            },
        },
    )

    registry = load_specs(path)

    assert len(registry) == 2
    first, second = registry.get(UPDATE)
    assert first.success_template == "Updated order {{order.title}}"
    assert first.detail_expr == "{_DIFF{old, order}}"
    assert first.action_type == "UPDATE"
    assert second.success_template == ""
    assert second.fail_template == "Update failed: {{_errorMsg}}"
    [batch] = registry.get(MethodRef("shop.orders.OrderService", "import_all"))
    assert batch.is_batch
    assert batch.batch_collection_expr == "items"


def test_load_specs_null_values_read_as_empty(tmp_path: Path) -> None:
    path = _write(tmp_path, {"operations": {UPDATE.key: {"success": "Done", "extra": None}}})
    [spec] = load_specs(path).get(UPDATE)
    assert spec.extra_expr == ""


def test_load_specs_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "specs.yaml"
    path.write_text("", encoding="utf-8")
    assert len(load_specs(str(path))) == 0


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"operations": {UPDATE.key: [{"success": "Done", "unknown": 1}]}},
        {"operations": {UPDATE.key: [{"type": "ORDER"}]}},
        {"operations": {UPDATE.key: [{"success": "Done", "is_batch": True}]}},
    ],
)
def test_load_specs_invalid(tmp_path: Path, data) -> None:
    with pytest.raises(ConfigurationError):
        load_specs(_write(tmp_path, data))


def test_load_specs_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "specs.yaml"
    path.write_text("operations: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid spec file"):
        load_specs(str(path))


def test_spec_registry_add_appends() -> None:
    registry = SpecRegistry()
    registry.add(UPDATE.key)
    assert registry.get(UPDATE) == ()
    assert registry.keys() == [UPDATE.key]
    assert registry.get(MethodRef("a", "b")) == ()

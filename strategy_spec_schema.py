"""
Validation utilities for strategy payloads arriving as plain JSON.

Reports every problem with a path instead of stopping at the first one, so a
builder UI can highlight all offending fields at once.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from strategy_catalog import (
    APPLIED_PRICES,
    CONDITION_OPERATORS,
    INDICATOR_TYPES,
    MA_METHODS,
    MANAGEMENT_TYPES,
    SUPPORTED_ASSETS,
    SUPPORTED_TIMEFRAMES,
)
from strategy_model import StrategySpecification

CONDITION_LISTS = ("buyConditions", "sellConditions")
NON_NEGATIVE_POINT_FIELDS = ("stopLossPoints", "takeProfitPoints", "trailingStopPoints")


def _is_dict(value: Any) -> bool:
    return isinstance(value, dict)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def _add_error(errors: List[Dict[str, str]], path: str, message: str) -> None:
    errors.append({"path": path, "message": message})


def _validate_condition(condition: Dict[str, Any], path: str, errors: List[Dict[str, str]]) -> None:
    if not isinstance(condition.get("id"), str) or not condition["id"].strip():
        _add_error(errors, f"{path}.id", "must be a non-empty string")

    if condition.get("name") not in INDICATOR_TYPES:
        _add_error(errors, f"{path}.name", f"must be one of: {INDICATOR_TYPES}")

    period = condition.get("period", 14)
    if not _is_int(period) or period < 1:
        _add_error(errors, f"{path}.period", "must be an integer >= 1")

    shift = condition.get("shift", 0)
    if not _is_int(shift) or shift < 0:
        _add_error(errors, f"{path}.shift", "must be an integer >= 0")

    if condition.get("method") is not None and condition["method"] not in MA_METHODS:
        _add_error(errors, f"{path}.method", f"must be one of: {MA_METHODS}")

    if condition.get("appliedTo") is not None and condition["appliedTo"] not in APPLIED_PRICES:
        _add_error(errors, f"{path}.appliedTo", f"must be one of: {APPLIED_PRICES}")

    if condition.get("condition") not in CONDITION_OPERATORS:
        _add_error(errors, f"{path}.condition", f"must be one of: {CONDITION_OPERATORS}")

    if not _is_number(condition.get("value")):
        _add_error(errors, f"{path}.value", "must be a number")


def _validate_risk(risk: Any, errors: List[Dict[str, str]]) -> None:
    if not _is_dict(risk):
        _add_error(errors, "risk", "must be an object")
        return

    if not _is_number(risk.get("lotSize")) or risk["lotSize"] <= 0:
        _add_error(errors, "risk.lotSize", "must be > 0")

    for field in NON_NEGATIVE_POINT_FIELDS:
        value = risk.get(field)
        if not _is_int(value) or value < 0:
            _add_error(errors, f"risk.{field}", "must be an integer >= 0 (0 disables)")

    if "useCompoundInterest" in risk and not isinstance(risk["useCompoundInterest"], bool):
        _add_error(errors, "risk.useCompoundInterest", "must be a boolean")

    if "riskPercent" in risk and (not _is_number(risk["riskPercent"]) or risk["riskPercent"] < 0):
        _add_error(errors, "risk.riskPercent", "must be a number >= 0")

    management_type = risk.get("managementType")
    if management_type not in MANAGEMENT_TYPES:
        _add_error(errors, "risk.managementType", f"must be one of: {sorted(MANAGEMENT_TYPES)}")
        return

    # Settings of an inactive mode are kept but never checked.
    if management_type == "MARTINGALE":
        multiplier = risk.get("multiplier")
        if not _is_number(multiplier) or multiplier <= 0:
            _add_error(errors, "risk.multiplier", "must be > 0 under MARTINGALE")

    if management_type == "GRID":
        grid_step = risk.get("gridStep")
        if not _is_int(grid_step) or grid_step < 0:
            _add_error(errors, "risk.gridStep", "must be an integer >= 0 under GRID")


def validate_strategy_spec(spec: Any) -> Tuple[bool, List[Dict[str, str]]]:
    errors: List[Dict[str, str]] = []

    if not _is_dict(spec):
        return False, [{"path": "root", "message": "strategy must be an object"}]

    if not isinstance(spec.get("name"), str) or not spec["name"].strip():
        _add_error(errors, "name", "must be a non-empty string")

    if spec.get("asset") not in SUPPORTED_ASSETS:
        _add_error(errors, "asset", f"must be one of: {sorted(SUPPORTED_ASSETS)}")

    if spec.get("timeframe") not in SUPPORTED_TIMEFRAMES:
        _add_error(errors, "timeframe", f"must be one of: {sorted(SUPPORTED_TIMEFRAMES)}")

    if spec.get("description") is not None and not isinstance(spec["description"], str):
        _add_error(errors, "description", "must be a string")

    for list_name in CONDITION_LISTS:
        conditions = spec.get(list_name, [])
        if not isinstance(conditions, list):
            _add_error(errors, list_name, "must be a list (may be empty)")
            continue

        seen_ids = set()
        for idx, condition in enumerate(conditions):
            path = f"{list_name}[{idx}]"
            if not _is_dict(condition):
                _add_error(errors, path, "must be an object")
                continue
            _validate_condition(condition, path, errors)
            condition_id = condition.get("id")
            if isinstance(condition_id, str):
                if condition_id in seen_ids:
                    _add_error(errors, f"{path}.id", f"duplicate condition id {condition_id}")
                seen_ids.add(condition_id)

    _validate_risk(spec.get("risk"), errors)

    return len(errors) == 0, errors


def assert_valid_strategy_spec(spec: Dict[str, Any]) -> Dict[str, Any]:
    valid, errors = validate_strategy_spec(spec)
    if not valid:
        detail = "; ".join([f"{item['path']}: {item['message']}" for item in errors])
        raise ValueError(f"Invalid strategy: {detail}")
    return spec


def load_strategy_spec(spec: Dict[str, Any]) -> StrategySpecification:
    """Validate a camelCase payload and build the immutable model from it."""
    return StrategySpecification.model_validate(assert_valid_strategy_spec(spec))

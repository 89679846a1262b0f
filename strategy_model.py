"""
Strategy specification model.

Immutable pydantic models for indicator conditions, the risk policy and the
strategy specification itself, plus the pure edit operations the builder
applies to them. Every edit returns a new specification; the input is never
mutated, so earlier snapshots stay valid.

JSON uses camelCase keys (``buyConditions``, ``stopLossPoints``), Python code
uses the snake_case attribute names.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from strategy_catalog import MOVING_AVERAGE, SUPPORTED_ASSETS, SUPPORTED_TIMEFRAMES

IndicatorName = Literal[
    "RSI",
    "Moving Average",
    "Bollinger Bands",
    "MACD",
    "Stochastic",
    "CCI",
    "ADX",
    "ATR",
]
ConditionOperator = Literal["GREATER", "LESS", "CROSS_UP", "CROSS_DOWN"]
MaMethod = Literal["MODE_SMA", "MODE_EMA", "MODE_SMMA", "MODE_LWMA"]
AppliedPrice = Literal["PRICE_CLOSE", "PRICE_OPEN", "PRICE_HIGH", "PRICE_LOW"]
ManagementType = Literal["FIXED", "MARTINGALE", "GRID"]


class InvalidArgument(ValueError):
    """Malformed input to a strategy edit (bad side, index or field)."""


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    extra="forbid",
    allow_inf_nan=False,
)


def new_condition_id() -> str:
    return uuid.uuid4().hex


def _first_duplicate_id(conditions) -> Optional[str]:
    seen = set()
    for condition in conditions:
        if condition.id in seen:
            return condition.id
        seen.add(condition.id)
    return None


class IndicatorCondition(BaseModel):
    """One AND-ed entry rule: ``<name>(period) <condition> <value>``."""

    model_config = _MODEL_CONFIG

    id: str = Field(default_factory=new_condition_id, min_length=1)
    name: IndicatorName = "RSI"
    period: int = Field(default=14, ge=1)
    shift: int = Field(default=0, ge=0)
    method: Optional[MaMethod] = None
    applied_to: Optional[AppliedPrice] = None
    condition: ConditionOperator = "LESS"
    value: float = 0.0

    @property
    def effective_method(self) -> Optional[str]:
        """Smoothing method, only when it means something for this indicator."""
        if self.name == MOVING_AVERAGE:
            return self.method
        return None


class RiskPolicy(BaseModel):
    """
    Position sizing and exit rules.

    ``multiplier`` only matters under MARTINGALE and ``grid_step`` only under
    GRID. Both are kept when the mode changes so switching back restores them.
    """

    model_config = _MODEL_CONFIG

    lot_size: float = Field(default=0.1, gt=0)
    stop_loss_points: int = Field(default=500, ge=0)
    take_profit_points: int = Field(default=1000, ge=0)
    trailing_stop_points: int = Field(default=200, ge=0)
    use_compound_interest: bool = False
    risk_percent: float = Field(default=1.0, ge=0)
    management_type: ManagementType = "FIXED"
    multiplier: Optional[float] = None
    grid_step: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_active_mode(self) -> "RiskPolicy":
        if self.management_type == "MARTINGALE":
            if self.multiplier is None or self.multiplier <= 0:
                raise ValueError("multiplier must be > 0 under MARTINGALE management")
        if self.management_type == "GRID" and self.grid_step is None:
            raise ValueError("grid_step is required under GRID management")
        return self

    def active_mode_fields(self) -> Dict[str, Any]:
        """Mode-specific settings that apply to the active management type only."""
        if self.management_type == "MARTINGALE":
            return {"multiplier": self.multiplier}
        if self.management_type == "GRID":
            return {"grid_step": self.grid_step}
        return {}


class StrategySpecification(BaseModel):
    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    asset: str
    timeframe: str
    description: Optional[str] = None
    buy_conditions: Tuple[IndicatorCondition, ...] = ()
    sell_conditions: Tuple[IndicatorCondition, ...] = ()
    risk: RiskPolicy = Field(default_factory=RiskPolicy)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must be a non-empty string")
        return value

    @field_validator("asset")
    @classmethod
    def _asset_supported(cls, value: str) -> str:
        if value not in SUPPORTED_ASSETS:
            raise ValueError(f"unsupported asset {value!r}; must be one of {sorted(SUPPORTED_ASSETS)}")
        return value

    @field_validator("timeframe")
    @classmethod
    def _timeframe_supported(cls, value: str) -> str:
        if value not in SUPPORTED_TIMEFRAMES:
            raise ValueError(
                f"unsupported timeframe {value!r}; must be one of {sorted(SUPPORTED_TIMEFRAMES)}"
            )
        return value

    @model_validator(mode="after")
    def _condition_ids_unique(self) -> "StrategySpecification":
        for field_name in ("buy_conditions", "sell_conditions"):
            duplicate = _first_duplicate_id(getattr(self, field_name))
            if duplicate is not None:
                raise ValueError(f"duplicate condition id {duplicate!r} in {to_camel(field_name)}")
        return self

    def conditions(self, side: Union[Side, str]) -> Tuple[IndicatorCondition, ...]:
        if _coerce_side(side) is Side.BUY:
            return self.buy_conditions
        return self.sell_conditions

    def to_payload(self) -> Dict[str, Any]:
        """camelCase JSON-ready dict, every field included."""
        return self.model_dump(mode="json", by_alias=True)


# ─── Defaults ──────────────────────────────────────────────────────

BUY_CONDITION_DEFAULTS: Dict[str, Any] = {
    "name": "RSI",
    "period": 14,
    "shift": 0,
    "condition": "LESS",
    "value": 30,
}

SELL_CONDITION_DEFAULTS: Dict[str, Any] = {
    "name": "RSI",
    "period": 14,
    "shift": 0,
    "condition": "GREATER",
    "value": 70,
}


def create_default() -> StrategySpecification:
    return StrategySpecification(
        name="GoldRush_V1",
        asset="XAUUSD",
        timeframe="PERIOD_H1",
        buy_conditions=(),
        sell_conditions=(),
        risk=RiskPolicy(
            lot_size=0.1,
            stop_loss_points=500,
            take_profit_points=1000,
            trailing_stop_points=200,
            use_compound_interest=False,
            risk_percent=1.0,
            management_type="FIXED",
            multiplier=1.5,
            grid_step=300,
        ),
    )


# ─── Pure edit operations ──────────────────────────────────────────

def _coerce_side(side: Union[Side, str]) -> Side:
    if isinstance(side, Side):
        return side
    if isinstance(side, str):
        try:
            return Side(side.strip().upper())
        except ValueError:
            pass
    raise InvalidArgument(f"side must be BUY or SELL, got {side!r}")


def _side_field(side: Side) -> str:
    return "buy_conditions" if side is Side.BUY else "sell_conditions"


def _with_conditions(
    spec: StrategySpecification,
    side: Side,
    conditions: Tuple[IndicatorCondition, ...],
) -> StrategySpecification:
    # model_copy skips validation, so id uniqueness is enforced here.
    duplicate = _first_duplicate_id(conditions)
    if duplicate is not None:
        raise InvalidArgument(f"duplicate {side.value} condition id {duplicate!r}")
    return spec.model_copy(update={_side_field(side): conditions})


def _build_condition(fields: Mapping[str, Any]) -> IndicatorCondition:
    try:
        return IndicatorCondition.model_validate(dict(fields))
    except ValidationError as exc:
        raise InvalidArgument(f"invalid indicator condition: {exc}") from exc


def add_condition(
    spec: StrategySpecification,
    side: Union[Side, str],
    defaults: Optional[Mapping[str, Any]] = None,
) -> StrategySpecification:
    """Append a new condition to one side, seeded with that side's defaults."""
    resolved = _coerce_side(side)
    seed = dict(BUY_CONDITION_DEFAULTS if resolved is Side.BUY else SELL_CONDITION_DEFAULTS)
    if defaults:
        seed.update(defaults)
    condition = _build_condition(seed)
    return _with_conditions(spec, resolved, spec.conditions(resolved) + (condition,))


def update_condition(
    spec: StrategySpecification,
    side: Union[Side, str],
    index: int,
    new_condition: Union[IndicatorCondition, Mapping[str, Any]],
) -> StrategySpecification:
    resolved = _coerce_side(side)
    current = spec.conditions(resolved)
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(current):
        raise InvalidArgument(
            f"{resolved.value} condition index {index!r} out of range (0..{len(current) - 1})"
        )
    if not isinstance(new_condition, IndicatorCondition):
        fields = dict(new_condition)
        fields.setdefault("id", current[index].id)
        new_condition = _build_condition(fields)

    updated = list(current)
    updated[index] = new_condition
    return _with_conditions(spec, resolved, tuple(updated))


def remove_condition(
    spec: StrategySpecification,
    side: Union[Side, str],
    index: int,
) -> StrategySpecification:
    """Drop the condition at ``index``; an index outside the list removes nothing."""
    resolved = _coerce_side(side)
    remaining = tuple(
        condition for position, condition in enumerate(spec.conditions(resolved)) if position != index
    )
    return _with_conditions(spec, resolved, remaining)


def _resolve_field(model: type, field_name: str) -> str:
    if isinstance(field_name, str):
        for name in model.model_fields:
            if field_name in (name, to_camel(name)):
                return name
    raise InvalidArgument(f"unknown {model.__name__} field {field_name!r}")


def set_risk_field(spec: StrategySpecification, field_name: str, value: Any) -> StrategySpecification:
    """Update a single risk field (snake_case or camelCase name)."""
    name = _resolve_field(RiskPolicy, field_name)
    fields = spec.risk.model_dump()
    fields[name] = value
    try:
        risk = RiskPolicy.model_validate(fields)
    except ValidationError as exc:
        raise InvalidArgument(f"invalid value for risk field {field_name!r}: {exc}") from exc
    return spec.model_copy(update={"risk": risk})


EDITABLE_STRATEGY_FIELDS = ("name", "asset", "timeframe", "description")


def set_strategy_field(spec: StrategySpecification, field_name: str, value: Any) -> StrategySpecification:
    """Update name, asset, timeframe or description."""
    name = _resolve_field(StrategySpecification, field_name)
    if name not in EDITABLE_STRATEGY_FIELDS:
        raise InvalidArgument(f"field {field_name!r} is not editable through set_strategy_field")
    fields = spec.model_dump()
    fields[name] = value
    try:
        return StrategySpecification.model_validate(fields)
    except ValidationError as exc:
        raise InvalidArgument(f"invalid value for field {field_name!r}: {exc}") from exc

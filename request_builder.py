"""
Renders a strategy specification into the two oracle requests.

Pure string/dict rendering: no network, no I/O. The same specification always
renders to the same requests.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from pydantic import BaseModel, ConfigDict

from prompts import CODE_GENERATION_PROMPT, EMPTY_CONDITIONS_LINE, SIMULATION_PROMPT
from strategy_model import IndicatorCondition, RiskPolicy, StrategySpecification

SIMULATION_LOOKBACK_MONTHS = 12
SIMULATION_CURVE_POINTS = 20
SIMULATION_STARTING_BALANCE = 10000

SIMULATION_RESULT_FIELDS = (
    "profitFactor",
    "winRate",
    "totalTrades",
    "maxDrawdown",
    "netProfit",
    "equityCurve",
    "analysis",
)

SIMULATION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "profitFactor": {"type": "number"},
        "winRate": {"type": "number"},
        "totalTrades": {"type": "integer"},
        "maxDrawdown": {"type": "number"},
        "netProfit": {"type": "number"},
        "equityCurve": {"type": "array", "items": {"type": "number"}},
        "analysis": {"type": "string"},
    },
    "required": list(SIMULATION_RESULT_FIELDS),
    "additionalProperties": False,
}


class SimulationRequest(BaseModel):
    """Prompt, lossless strategy payload and the schema the reply must follow."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    strategy: Dict[str, Any]
    response_schema: Dict[str, Any]


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_condition(position: int, condition: IndicatorCondition) -> str:
    line = (
        f"{position}. {condition.name} (Period: {condition.period}) "
        f"is {condition.condition} value {_format_number(condition.value)}"
    )
    if condition.effective_method:
        line += f" ({condition.effective_method})"
    if condition.shift:
        line += f" [shift {condition.shift} bars]"
    if condition.applied_to:
        line += f" [applied to {condition.applied_to}]"
    return line


def format_conditions(conditions: Sequence[IndicatorCondition]) -> str:
    if not conditions:
        return EMPTY_CONDITIONS_LINE
    return "\n".join(format_condition(idx, condition) for idx, condition in enumerate(conditions, start=1))


def format_risk(risk: RiskPolicy) -> str:
    lines: List[str] = [
        f"- Type: {risk.management_type}",
        f"- Base Lot Size: {_format_number(risk.lot_size)}",
        f"- Stop Loss (Points): {risk.stop_loss_points}",
        f"- Take Profit (Points): {risk.take_profit_points}",
        f"- Trailing Stop (Points): {risk.trailing_stop_points}",
        f"- Compound Interest: {'enabled' if risk.use_compound_interest else 'disabled'}",
    ]
    if risk.use_compound_interest:
        lines.append(f"- Risk Per Trade (%): {_format_number(risk.risk_percent)}")

    mode_fields = risk.active_mode_fields()
    if "multiplier" in mode_fields:
        lines.append(f"- Martingale Multiplier: {_format_number(mode_fields['multiplier'])}")
    if "grid_step" in mode_fields:
        lines.append(f"- Grid Step (Points): {mode_fields['grid_step']}")
    return "\n".join(lines)


def build_code_generation_request(spec: StrategySpecification) -> str:
    """Prompt asking the code oracle for a complete MQL5 Expert Advisor."""
    request = CODE_GENERATION_PROMPT.format(
        ea_name=spec.name,
        symbol=spec.asset,
        timeframe=spec.timeframe,
        risk_lines=format_risk(spec.risk),
        buy_lines=format_conditions(spec.buy_conditions),
        sell_lines=format_conditions(spec.sell_conditions),
        management_type=spec.risk.management_type,
    )
    if spec.description:
        request += f"\nSTRATEGY NOTES:\n{spec.description.strip()}\n"
    return request


def simulation_payload(spec: StrategySpecification) -> Dict[str, Any]:
    payload = spec.to_payload()
    return {
        "asset": payload["asset"],
        "timeframe": payload["timeframe"],
        "buyConditions": payload["buyConditions"],
        "sellConditions": payload["sellConditions"],
        "risk": payload["risk"],
    }


def build_simulation_request(spec: StrategySpecification) -> SimulationRequest:
    strategy = simulation_payload(spec)
    prompt = SIMULATION_PROMPT.format(
        asset=spec.asset,
        timeframe=spec.timeframe,
        strategy_json=json.dumps(strategy, indent=2, sort_keys=True),
        lookback_months=SIMULATION_LOOKBACK_MONTHS,
        curve_points=SIMULATION_CURVE_POINTS,
        starting_balance=SIMULATION_STARTING_BALANCE,
    )
    return SimulationRequest(
        prompt=prompt,
        strategy=strategy,
        response_schema=SIMULATION_RESPONSE_SCHEMA,
    )

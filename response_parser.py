"""
Parsers for oracle replies.

The code oracle answers with free-form markdown; the simulation oracle answers
with JSON that should follow the declared schema. Code replies never fail to
parse, they degrade to a marker string. Simulation replies that do not fit the
schema raise RemoteFormatError, and callers swap in the fallback result.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

PARSE_FAILURE_MARKER = "// Error: Could not parse code."
SIMULATION_FAILED_MESSAGE = "Simulation failed. Please try again."
FALLBACK_BASELINE_EQUITY = 10000.0

# Optional language tag, only when it sits alone on the fence line.
_FIRST_FENCE_RE = re.compile(r"```(?:[\w+#.\-]+[ \t]*(?=\r?\n))?(.*?)```", re.DOTALL)
_ANY_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)


class RemoteFormatError(ValueError):
    """An oracle reply does not match the declared result shape."""


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    explanation: str


class SimulationResult(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
        allow_inf_nan=False,
    )

    profit_factor: float = Field(ge=0)
    win_rate: float = Field(ge=0, le=100)
    total_trades: int = Field(ge=0)
    max_drawdown: float = Field(ge=0, le=100)
    net_profit: float
    equity_curve: Tuple[float, ...] = Field(min_length=2)
    analysis: str

    @field_validator("profit_factor", "win_rate", "total_trades", "max_drawdown", "net_profit", mode="before")
    @classmethod
    def _reject_non_numbers(cls, value: Any) -> Any:
        if isinstance(value, (str, bool)) or value is None:
            raise ValueError("must be a JSON number")
        return value

    @field_validator("equity_curve", mode="before")
    @classmethod
    def _reject_non_numeric_points(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise ValueError("must be a list of numbers")
        for point in value:
            if isinstance(point, (str, bool)) or point is None:
                raise ValueError("must be a list of numbers")
        return value

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def parse_code_reply(raw_text: Optional[str]) -> GenerationResult:
    """Split a markdown reply into the first fenced code block and the prose around it."""
    text = raw_text or ""
    match = _FIRST_FENCE_RE.search(text)
    code = match.group(1).strip() if match else PARSE_FAILURE_MARKER
    explanation = _ANY_FENCE_RE.sub("", text).strip()
    if not match:
        logger.warning("Code reply contained no fenced code block (%d chars)", len(text))
    return GenerationResult(code=code, explanation=explanation)


def _strip_markdown_fence(text: str) -> str:
    match = _FIRST_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_simulation_reply(raw: Union[str, bytes, Dict[str, Any]]) -> SimulationResult:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        try:
            payload = json.loads(_strip_markdown_fence(raw))
        except json.JSONDecodeError as exc:
            raise RemoteFormatError(f"simulation reply is not valid JSON: {exc}") from exc
    else:
        payload = raw

    if not isinstance(payload, dict):
        raise RemoteFormatError("simulation reply must be a JSON object")

    try:
        return SimulationResult.model_validate(payload)
    except ValidationError as exc:
        raise RemoteFormatError(f"simulation reply does not match schema: {exc}") from exc


def fallback_simulation_result() -> SimulationResult:
    return SimulationResult(
        profit_factor=0,
        win_rate=0,
        total_trades=0,
        max_drawdown=0,
        net_profit=0,
        equity_curve=(FALLBACK_BASELINE_EQUITY, FALLBACK_BASELINE_EQUITY),
        analysis=SIMULATION_FAILED_MESSAGE,
    )


def parse_simulation_reply_or_fallback(raw: Union[str, bytes, Dict[str, Any]]) -> SimulationResult:
    try:
        return parse_simulation_reply(raw)
    except RemoteFormatError as exc:
        logger.warning("Simulation reply rejected, using fallback result: %s", exc)
        return fallback_simulation_result()

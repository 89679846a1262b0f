"""
Expert Advisor Generator - one generation cycle for a strategy

Implements:
- Rendering the code-generation and simulation requests
- Dispatching both to their oracles concurrently and waiting for both
- Parsing both replies (simulation falls back to a neutral result on bad JSON)
- All-or-nothing outcome: a transport failure on either side fails the cycle
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ai_providers import CodeOracle, RemoteUnavailableError, SimulationOracle
from equity_curve import DEFAULT_HEIGHT, Point, normalize_curve
from request_builder import build_code_generation_request, build_simulation_request
from response_parser import (
    GenerationResult,
    SimulationResult,
    parse_code_reply,
    parse_simulation_reply_or_fallback,
)
from strategy_model import StrategySpecification

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate Expert Advisor code."
EXPORT_EXTENSION = ".mq5"
DEFAULT_EXPORT_STEM = "Strategy"


def export_filename(ea_name: Optional[str] = None) -> str:
    """File name for the downloadable MQL5 source, derived from the EA name."""
    stem = ""
    if ea_name:
        stem = re.sub(r"[^A-Za-z0-9_.-]+", "_", ea_name).strip("._")
    return f"{stem or DEFAULT_EXPORT_STEM}{EXPORT_EXTENSION}"


class GenerationCycleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    generation: GenerationResult
    simulation: SimulationResult
    equity_points: List[Point]
    filename: str


class ExpertAdvisorGenerator:
    """Generates EA source code and a simulated backtest for a strategy"""

    def __init__(
        self,
        code_oracle: CodeOracle,
        simulation_oracle: Optional[SimulationOracle] = None,
        curve_height: float = DEFAULT_HEIGHT,
    ):
        if simulation_oracle is None:
            if not isinstance(code_oracle, SimulationOracle):
                raise TypeError("simulation_oracle is required when code_oracle cannot simulate")
            simulation_oracle = code_oracle
        self.code_oracle = code_oracle
        self.simulation_oracle = simulation_oracle
        self.curve_height = curve_height

    async def generate(self, spec: StrategySpecification) -> GenerationCycleResult:
        """
        Run one generation cycle.

        Both oracle calls are in flight at the same time and the cycle waits for
        both. If either raises, RemoteUnavailableError is raised and the other
        reply is discarded.
        """
        code_request = build_code_generation_request(spec)
        simulation_request = build_simulation_request(spec)

        logger.info("Generating EA %s (%s %s)", spec.name, spec.asset, spec.timeframe)

        code_reply, simulation_reply = await asyncio.gather(
            self.code_oracle.generate_code(code_request),
            self.simulation_oracle.simulate_backtest(simulation_request),
            return_exceptions=True,
        )

        failures = [reply for reply in (code_reply, simulation_reply) if isinstance(reply, BaseException)]
        if failures:
            for failure in failures:
                logger.error("Oracle call failed: %r", failure)
            raise RemoteUnavailableError(GENERATION_FAILED_MESSAGE) from failures[0]

        generation = parse_code_reply(code_reply)
        simulation = parse_simulation_reply_or_fallback(simulation_reply)
        equity_points = normalize_curve(simulation.equity_curve, self.curve_height)

        logger.info(
            "EA %s generated: %d chars of code, %d simulated trades",
            spec.name, len(generation.code), simulation.total_trades,
        )

        return GenerationCycleResult(
            generation=generation,
            simulation=simulation,
            equity_points=equity_points,
            filename=export_filename(spec.name),
        )

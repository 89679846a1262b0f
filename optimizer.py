"""
Deterministic parameter nudge for a strategy.

Tightens the stop, widens the target and lengthens every indicator period by
one bar. There is no feedback from simulation results: the same input always
yields the same output.
"""

from __future__ import annotations

import math

from strategy_model import IndicatorCondition, StrategySpecification

OPTIMIZED_SUFFIX = "_Optimized"
STOP_LOSS_FACTOR = 0.9
TAKE_PROFIT_FACTOR = 1.1


def _scale_points(points: int, factor: float) -> int:
    # 0 means disabled and stays disabled.
    if points > 0:
        return math.floor(points * factor)
    return points


def _nudge_period(condition: IndicatorCondition) -> IndicatorCondition:
    return condition.model_copy(update={"period": condition.period + 1})


def optimize_strategy(spec: StrategySpecification) -> StrategySpecification:
    risk = spec.risk.model_copy(
        update={
            "stop_loss_points": _scale_points(spec.risk.stop_loss_points, STOP_LOSS_FACTOR),
            "take_profit_points": _scale_points(spec.risk.take_profit_points, TAKE_PROFIT_FACTOR),
        }
    )
    return spec.model_copy(
        update={
            "name": spec.name + OPTIMIZED_SUFFIX,
            "buy_conditions": tuple(_nudge_period(condition) for condition in spec.buy_conditions),
            "sell_conditions": tuple(_nudge_period(condition) for condition in spec.sell_conditions),
            "risk": risk,
        }
    )

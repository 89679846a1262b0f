"""
Pre-built strategies the builder can start from.

Templates are defined once at import time and never change. Loading one
returns its specification, which replaces the live strategy outright.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict

from strategy_model import (
    IndicatorCondition,
    InvalidArgument,
    RiskPolicy,
    StrategySpecification,
)


class StrategyTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    config: StrategySpecification


PREBUILT_TEMPLATES: List[StrategyTemplate] = [
    StrategyTemplate(
        id="gold-scalper",
        name="Gold M5 Scalper",
        description="High-frequency scalping strategy for XAUUSD using RSI and Stochastic.",
        config=StrategySpecification(
            name="Gold_Scalper_Pro",
            asset="XAUUSD",
            timeframe="PERIOD_M5",
            buy_conditions=(
                IndicatorCondition(id="gold-scalper-buy-rsi", name="RSI", period=14, condition="LESS", value=30),
                IndicatorCondition(
                    id="gold-scalper-buy-stoch", name="Stochastic", period=5, condition="CROSS_UP", value=20
                ),
            ),
            sell_conditions=(
                IndicatorCondition(
                    id="gold-scalper-sell-rsi", name="RSI", period=14, condition="GREATER", value=70
                ),
                IndicatorCondition(
                    id="gold-scalper-sell-stoch", name="Stochastic", period=5, condition="CROSS_DOWN", value=80
                ),
            ),
            risk=RiskPolicy(
                lot_size=0.01,
                stop_loss_points=300,
                take_profit_points=600,
                trailing_stop_points=150,
                use_compound_interest=False,
                risk_percent=1,
                management_type="FIXED",
                multiplier=1.5,
                grid_step=300,
            ),
        ),
    ),
    StrategyTemplate(
        id="btc-trend",
        name="Bitcoin Trend Follower",
        description="Captures large moves in BTC using Moving Average crossovers.",
        config=StrategySpecification(
            name="BTC_TrendMaster",
            asset="BTCUSD",
            timeframe="PERIOD_H4",
            # Crossing "value 200" stands in for the 200-period MA.
            buy_conditions=(
                IndicatorCondition(
                    id="btc-trend-buy-ma",
                    name="Moving Average",
                    period=50,
                    method="MODE_EMA",
                    condition="CROSS_UP",
                    value=200,
                ),
            ),
            sell_conditions=(
                IndicatorCondition(
                    id="btc-trend-sell-ma",
                    name="Moving Average",
                    period=50,
                    method="MODE_EMA",
                    condition="CROSS_DOWN",
                    value=200,
                ),
            ),
            risk=RiskPolicy(
                lot_size=0.1,
                stop_loss_points=5000,
                take_profit_points=15000,
                trailing_stop_points=2000,
                use_compound_interest=True,
                risk_percent=2,
                management_type="FIXED",
                multiplier=1.5,
                grid_step=300,
            ),
        ),
    ),
    StrategyTemplate(
        id="martingale-grid",
        name="Forex Grid Recovery",
        description="Advanced grid strategy for EURUSD. WARNING: High Risk.",
        config=StrategySpecification(
            name="EUR_Grid_System",
            asset="EURUSD",
            timeframe="PERIOD_M15",
            buy_conditions=(
                IndicatorCondition(
                    id="martingale-grid-buy-cci", name="CCI", period=14, condition="LESS", value=-100
                ),
            ),
            sell_conditions=(
                IndicatorCondition(
                    id="martingale-grid-sell-cci", name="CCI", period=14, condition="GREATER", value=100
                ),
            ),
            risk=RiskPolicy(
                lot_size=0.01,
                stop_loss_points=0,  # no hard stop for grid recovery
                take_profit_points=200,
                trailing_stop_points=0,
                use_compound_interest=False,
                risk_percent=1,
                management_type="MARTINGALE",
                multiplier=1.5,
                grid_step=300,
            ),
        ),
    ),
]

_TEMPLATES_BY_ID: Dict[str, StrategyTemplate] = {template.id: template for template in PREBUILT_TEMPLATES}


def get_template(template_id: str) -> StrategyTemplate:
    try:
        return _TEMPLATES_BY_ID[template_id]
    except KeyError:
        raise InvalidArgument(
            f"unknown template {template_id!r}; available: {sorted(_TEMPLATES_BY_ID)}"
        ) from None


def load_template(template_id: str) -> StrategySpecification:
    """Specification to install as the live strategy (no merge with the old one)."""
    return get_template(template_id).config

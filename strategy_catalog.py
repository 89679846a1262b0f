"""
Fixed catalogs the strategy builder chooses from.

Symbols, timeframes and enum values here are the only ones accepted by the
model and the payload validator.
"""

from typing import Dict, List

ASSET_CLASS_FOREX = "Forex"
ASSET_CLASS_CRYPTO = "Crypto"
ASSET_CLASS_STOCK = "Stock"
ASSET_CLASS_COMMODITY = "Commodity"

ASSETS: List[Dict[str, str]] = [
    {"symbol": "XAUUSD", "name": "Gold vs US Dollar", "type": ASSET_CLASS_COMMODITY},
    {"symbol": "BTCUSD", "name": "Bitcoin", "type": ASSET_CLASS_CRYPTO},
    {"symbol": "ETHUSD", "name": "Ethereum", "type": ASSET_CLASS_CRYPTO},
    {"symbol": "EURUSD", "name": "Euro vs US Dollar", "type": ASSET_CLASS_FOREX},
    {"symbol": "GBPUSD", "name": "Great Britain Pound", "type": ASSET_CLASS_FOREX},
    {"symbol": "US30", "name": "Dow Jones 30", "type": ASSET_CLASS_STOCK},
    {"symbol": "NDX100", "name": "Nasdaq 100", "type": ASSET_CLASS_STOCK},
    {"symbol": "AAPL", "name": "Apple Inc.", "type": ASSET_CLASS_STOCK},
    {"symbol": "TSLA", "name": "Tesla Inc.", "type": ASSET_CLASS_STOCK},
    {"symbol": "NVDA", "name": "NVIDIA Corp.", "type": ASSET_CLASS_STOCK},
]

TIMEFRAMES: List[Dict[str, str]] = [
    {"label": "M1 (1 Minute)", "value": "PERIOD_M1"},
    {"label": "M5 (5 Minutes)", "value": "PERIOD_M5"},
    {"label": "M15 (15 Minutes)", "value": "PERIOD_M15"},
    {"label": "H1 (1 Hour)", "value": "PERIOD_H1"},
    {"label": "H4 (4 Hours)", "value": "PERIOD_H4"},
    {"label": "D1 (Daily)", "value": "PERIOD_D1"},
]

INDICATOR_TYPES = [
    "RSI",
    "Moving Average",
    "Bollinger Bands",
    "MACD",
    "Stochastic",
    "CCI",
    "ADX",
    "ATR",
]

MOVING_AVERAGE = "Moving Average"

MA_METHODS = ["MODE_SMA", "MODE_EMA", "MODE_SMMA", "MODE_LWMA"]
APPLIED_PRICES = ["PRICE_CLOSE", "PRICE_OPEN", "PRICE_HIGH", "PRICE_LOW"]

CONDITION_OPERATORS = ["GREATER", "LESS", "CROSS_UP", "CROSS_DOWN"]

RISK_TYPES: List[Dict[str, str]] = [
    {"value": "FIXED", "label": "Fixed Lot Size"},
    {"value": "MARTINGALE", "label": "Martingale (Risky)"},
    {"value": "GRID", "label": "Grid System (Range)"},
]

SUPPORTED_ASSETS = {asset["symbol"] for asset in ASSETS}
SUPPORTED_TIMEFRAMES = {timeframe["value"] for timeframe in TIMEFRAMES}
MANAGEMENT_TYPES = {risk_type["value"] for risk_type in RISK_TYPES}


def catalog_snapshot() -> Dict[str, List]:
    """Everything a builder UI needs to populate its pickers."""
    return {
        "assets": [dict(asset) for asset in ASSETS],
        "timeframes": [dict(timeframe) for timeframe in TIMEFRAMES],
        "indicators": list(INDICATOR_TYPES),
        "ma_methods": list(MA_METHODS),
        "applied_prices": list(APPLIED_PRICES),
        "operators": list(CONDITION_OPERATORS),
        "risk_types": [dict(risk_type) for risk_type in RISK_TYPES],
    }

CODE_SYSTEM_PROMPT = """
<role>
You are an expert MQL5 (MetaQuotes Language 5) developer.
You write COMPLETE, COMPILABLE and ROBUST Expert Advisors for MetaTrader 5 from a
structured strategy configuration. The EA trades real money: prefer explicit,
defensive order handling over clever shortcuts.
</role>
"""

CODE_GENERATION_PROMPT = """
Write an Expert Advisor (EA) for MetaTrader 5 based on the following strategy configuration.

STRATEGY CONFIGURATION:
-----------------------
EA Name: {ea_name}
Symbol: {symbol}
Timeframe: {timeframe}

RISK MANAGEMENT:
{risk_lines}

BUY ENTRY LOGIC (All must be true):
{buy_lines}

SELL ENTRY LOGIC (All must be true):
{sell_lines}

REQUIREMENTS:
1. Include standard MQL5 libraries (`#include <Trade\\Trade.mqh>`).
2. Use the `CTrade` class for execution.
3. Implement `OnInit`, `OnDeinit`, and `OnTick` functions.
4. Implement logic for {management_type} money management.
5. Handle new bar detection to avoid tick spamming (unless scalper).
6. Include comments explaining the code logic.

OUTPUT FORMAT:
Return valid MQL5 code inside a single Markdown code block.
Followed by a brief textual summary.
"""

EMPTY_CONDITIONS_LINE = "(none: this side never triggers)"

SIMULATION_SYSTEM_PROMPT = """
Act as a high-frequency trading simulation engine.
You estimate plausible backtest metrics for a rule-based strategy from the historical
behaviour of the traded instrument. Return JSON only, matching the declared schema exactly.
"""

SIMULATION_PROMPT = """
Analyze the following trading strategy logic for {asset} on {timeframe}.

STRATEGY:
{strategy_json}

Task:
1. Evaluate the mathematical probability of this strategy working based on historical market behavior of {asset}.
2. SIMULATE a backtest over the last {lookback_months} months.
3. Generate realistic metrics (Profit Factor, Win Rate, Drawdown).
4. Generate a {curve_points}-point equity curve array representing the balance over time (starting at {starting_balance}).

Return exactly these fields and nothing else:
{{
  "profitFactor": number,
  "winRate": number (percent, 0-100),
  "totalTrades": integer,
  "maxDrawdown": number (percent, 0-100),
  "netProfit": number,
  "equityCurve": [number, ...],
  "analysis": "string summary"
}}
"""

#!/usr/bin/env python3
"""
Generate an MQL5 Expert Advisor from a template or a strategy JSON file.

With --dry-run, prints the two rendered oracle requests and exits without
any network access. Otherwise runs a full generation cycle, writes the .mq5
file and prints the simulated metrics.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ai_providers import ProviderOracle, RemoteUnavailableError, get_provider
from ea_generator import ExpertAdvisorGenerator
from optimizer import optimize_strategy
from request_builder import build_code_generation_request, build_simulation_request
from strategy_model import StrategySpecification, create_default
from strategy_spec_schema import load_strategy_spec
from strategy_templates import PREBUILT_TEMPLATES, load_template


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--template",
        choices=[template.id for template in PREBUILT_TEMPLATES],
        help="Start from a pre-built template",
    )
    source.add_argument("--spec", type=Path, help="Strategy JSON file (camelCase payload)")
    parser.add_argument("--optimize", action="store_true", help="Apply the optimizer before generating")
    parser.add_argument("--dry-run", action="store_true", help="Print the rendered requests only")
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="Where to write the .mq5 file")
    parser.add_argument("--provider", default=os.getenv("AI_PROVIDER", "anthropic"))
    parser.add_argument("--model", default=os.getenv("AI_MODEL"))
    parser.add_argument("--simulation-model", default=os.getenv("SIMULATION_MODEL"))
    return parser.parse_args()


def load_strategy(args: argparse.Namespace) -> StrategySpecification:
    if args.template:
        return load_template(args.template)
    if args.spec:
        return load_strategy_spec(json.loads(args.spec.read_text(encoding="utf-8")))
    return create_default()


async def run(args: argparse.Namespace, spec: StrategySpecification) -> int:
    provider = args.provider.lower()
    api_key = os.getenv("ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY")
    if not api_key:
        print(f"❌ Missing API key for {provider}")
        return 2

    oracle = ProviderOracle(
        code_provider=get_provider(api_key=api_key, model=args.model, provider=provider),
        simulation_provider=get_provider(
            api_key=api_key, model=args.simulation_model or args.model, provider=provider
        ),
    )
    generator = ExpertAdvisorGenerator(oracle)

    print(f"🤖 Generating {spec.name} ({spec.asset} {spec.timeframe})...")
    try:
        result = await generator.generate(spec)
    except RemoteUnavailableError as exc:
        print(f"❌ {exc} ({exc.__cause__!r})")
        return 1

    args.output_dir.mkdir(parents=True, exist_ok=True)
    target = args.output_dir / result.filename
    target.write_text(result.generation.code, encoding="utf-8")

    sim = result.simulation
    print(f"✅ Wrote {target}")
    print("-" * 70)
    print(f"Profit Factor: {sim.profit_factor:.2f}")
    print(f"Win Rate:      {sim.win_rate}%")
    print(f"Total Trades:  {sim.total_trades}")
    print(f"Max Drawdown:  {sim.max_drawdown}%")
    print(f"Net Profit:    {sim.net_profit:.2f}")
    print("-" * 70)
    print(sim.analysis)
    print("-" * 70)
    print(result.generation.explanation)
    return 0


def main() -> int:
    load_dotenv()
    args = parse_args()
    spec = load_strategy(args)
    if args.optimize:
        spec = optimize_strategy(spec)

    if args.dry_run:
        print(build_code_generation_request(spec))
        print("=" * 70)
        simulation_request = build_simulation_request(spec)
        print(simulation_request.prompt)
        print(json.dumps(simulation_request.response_schema, indent=2))
        return 0

    return asyncio.run(run(args, spec))


if __name__ == "__main__":
    sys.exit(main())

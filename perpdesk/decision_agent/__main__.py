"""Run one dry decision cycle against a flat account.

Usage:
    python -m perpdesk.decision_agent --equity 1000
    python -m perpdesk.decision_agent --equity 5000 --symbols BTCUSDT SOLUSDT
    python -m perpdesk.decision_agent --equity 1000 --provider deepseek --max-candidates 5

Prints the validated decision batch as JSON. Exits with status 1 and the
oracle rationale when the cycle fails.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from perpdesk.utils.logging import configure_logging

from .data.pool import StaticCandidatePool
from .exceptions import DecisionEngineError
from .models import AccountSnapshot, EngineConfig, LLMModelConfig
from .runtime import create_decision_runtime


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="perpdesk", description="Run one dry perpetual futures decision cycle"
    )
    parser.add_argument("--equity", type=float, required=True, help="Account equity (USD)")
    parser.add_argument(
        "--symbols",
        nargs="+",
        default=None,
        help="Fixed candidate symbols (default: HTTP candidate pool)",
    )
    parser.add_argument("--exchange", default=None, help="ccxt exchange id")
    parser.add_argument("--provider", default=None, help="Model provider")
    parser.add_argument("--model", default=None, help="Model id")
    parser.add_argument("--max-candidates", type=int, default=None)
    parser.add_argument("--major-leverage", type=int, default=None)
    parser.add_argument("--altcoin-leverage", type=int, default=None)
    parser.add_argument("--oracle-timeout", type=float, default=None)
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> EngineConfig:
    values = {
        "exchange_id": args.exchange,
        "max_candidates": args.max_candidates,
        "major_leverage": args.major_leverage,
        "altcoin_leverage": args.altcoin_leverage,
        "oracle_timeout_s": args.oracle_timeout,
    }
    values = {k: v for k, v in values.items() if v is not None}
    values["llm_model_config"] = LLMModelConfig(
        provider=args.provider, model_id=args.model
    )
    return EngineConfig(**values)


async def _run(args: argparse.Namespace) -> int:
    pool = StaticCandidatePool(args.symbols) if args.symbols else None
    runtime = create_decision_runtime(_build_config(args), pool=pool)
    account = AccountSnapshot(
        total_equity=args.equity, available_balance=args.equity
    )

    try:
        batch = await runtime.run_cycle(account)
    except DecisionEngineError as exc:
        logger.error("Decision cycle failed: {}", exc)
        if exc.rationale:
            print("=== Oracle rationale ===", file=sys.stderr)
            print(exc.rationale, file=sys.stderr)
        return 1

    print(batch.model_dump_json(indent=2, exclude={"user_prompt"}))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface for quoting and executing swaps.

Usage:
    python -m swap_engine.cli quote --network celo --from CUSD --to CEUR --amount 10
    SWAP_PRIVATE_KEY=0x... python -m swap_engine.cli swap --network alfajores \\
        --from CUSD --to CREAL --amount 5 --slippage-bps 100

Results are printed to stdout as JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import Any

import structlog

from swap_engine.chains import CHAINS, get_chain_by_name
from swap_engine.config import SwapConfig
from swap_engine.errors import SwapError
from swap_engine.models.api import QuoteResponse
from swap_engine.service import SwapParams, SwapService, SwapStep
from swap_engine.wallet import Web3Signer

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swap_engine", description="Quote and execute Mento stable asset swaps"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("quote", "Estimate a swap without sending transactions"),
        ("swap", "Execute a swap with a local private key"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--network",
            choices=sorted(chain.name for chain in CHAINS.values()),
            default="celo",
            help="Network to use",
        )
        sub.add_argument("--from", dest="from_token", required=True, help="Source token symbol")
        sub.add_argument("--to", dest="to_token", required=True, help="Destination token symbol")
        sub.add_argument("--amount", required=True, help="Amount of the source token")
        sub.add_argument(
            "--slippage-bps",
            type=int,
            default=None,
            help="Slippage tolerance in basis points (default: 50)",
        )

    subparsers.choices["swap"].add_argument(
        "--private-key-env",
        default="SWAP_PRIVATE_KEY",
        help="Environment variable holding the signing key",
    )
    subparsers.choices["swap"].add_argument(
        "--embedded-wallet",
        action="store_true",
        help="Use legacy transactions as constrained in-app wallets require",
    )
    return parser


def run_quote(args: argparse.Namespace) -> dict[str, Any]:
    service = SwapService.for_network(args.network)
    params = SwapParams(
        from_token=args.from_token,
        to_token=args.to_token,
        amount=args.amount,
        slippage_bps=args.slippage_bps,
    )
    try:
        response = QuoteResponse.from_estimate(service.estimate(params))
    except SwapError as e:
        response = QuoteResponse.from_error(e)
    return response.model_dump(by_alias=True, exclude_none=True)


def run_swap(args: argparse.Namespace) -> dict[str, Any]:
    private_key = os.environ.get(args.private_key_env)
    if not private_key:
        raise SystemExit(f"Set {args.private_key_env} to the signing key to run a swap")

    chain = get_chain_by_name(args.network)
    signer = Web3Signer.from_private_key(chain.rpc_url(), private_key)
    service = SwapService(
        chain, signer, SwapConfig.from_env(), embedded_wallet=args.embedded_wallet
    )

    def on_step(step: SwapStep) -> None:
        logger.info("swap_progress", step=step.value)

    params = SwapParams(
        from_token=args.from_token,
        to_token=args.to_token,
        amount=args.amount,
        slippage_bps=args.slippage_bps,
        on_step=on_step,
    )
    return service.swap(params).to_response()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the swap CLI."""
    args = build_parser().parse_args(argv)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )

    result = run_swap(args) if args.command == "swap" else run_quote(args)
    print(json.dumps(result, indent=2))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())

"""Tests for the command-line interface."""

import json

import pytest
import structlog

from swap_engine import cli
from swap_engine.service import SwapService
from tests.helpers import CEUR, CUSD, PROVIDER_A, make_engine, make_exchange


@pytest.fixture(autouse=True)
def reset_logging():
    """main() configures structlog globally; undo it after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def engine(monkeypatch):
    """Route SwapService.for_network to a fake-backed service."""
    engine = make_engine({PROVIDER_A: [make_exchange(CUSD, CEUR)]})
    engine.broker.set_rate(CUSD, CEUR, 92, 100)
    monkeypatch.setattr(
        SwapService, "for_network", classmethod(lambda cls, network: engine.service)
    )
    return engine


class TestParser:
    def test_quote_arguments(self):
        args = cli.build_parser().parse_args(
            ["quote", "--from", "CUSD", "--to", "CEUR", "--amount", "10"]
        )

        assert args.command == "quote"
        assert args.network == "celo"
        assert args.from_token == "CUSD"
        assert args.to_token == "CEUR"
        assert args.amount == "10"
        assert args.slippage_bps is None

    def test_swap_arguments(self):
        args = cli.build_parser().parse_args(
            [
                "swap",
                "--network",
                "alfajores",
                "--from",
                "CUSD",
                "--to",
                "CREAL",
                "--amount",
                "5",
                "--slippage-bps",
                "100",
                "--embedded-wallet",
            ]
        )

        assert args.network == "alfajores"
        assert args.slippage_bps == 100
        assert args.embedded_wallet is True
        assert args.private_key_env == "SWAP_PRIVATE_KEY"

    def test_unknown_network_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["quote", "--network", "polygon", "--from", "CUSD", "--to", "CEUR", "--amount", "1"]
            )

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestQuoteCommand:
    def test_prints_quote(self, engine, capsys):
        exit_code = cli.main(["quote", "--from", "CUSD", "--to", "CEUR", "--amount", "100"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["success"] is True
        assert output["expectedOut"] == str(92 * 10**18)
        assert output["route"] == ["CUSD", "CEUR"]

    def test_failed_quote_exits_nonzero(self, engine, capsys):
        exit_code = cli.main(["quote", "--from", "CKES", "--to", "CREAL", "--amount", "1"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["errorKind"] == "NoRouteFound"


class TestSwapCommand:
    def test_missing_private_key(self, monkeypatch):
        monkeypatch.delenv("SWAP_PRIVATE_KEY", raising=False)

        with pytest.raises(SystemExit, match="SWAP_PRIVATE_KEY"):
            cli.main(["swap", "--from", "CUSD", "--to", "CEUR", "--amount", "1"])

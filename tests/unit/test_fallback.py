"""Unit tests for the testnet fallback simulator."""

from decimal import Decimal

import pytest

from swap_engine.assets import AssetRegistry
from swap_engine.constants import ALFAJORES_CHAIN_ID, CELO_MAINNET_CHAIN_ID
from swap_engine.fallback import FallbackSimulator, Ineligible, synthetic_tx_hash
from swap_engine.models.results import SimulatedSwapResult
from swap_engine.models.routing import PathNotFound
from swap_engine.models.types import is_tx_hash
from tests.helpers import ONE, mainnet_env, testnet_env


@pytest.fixture
def testnet_assets():
    return AssetRegistry.for_chain(ALFAJORES_CHAIN_ID)


@pytest.fixture
def mainnet_assets():
    return AssetRegistry.for_chain(CELO_MAINNET_CHAIN_ID)


def _not_found(a, b) -> PathNotFound:
    return PathNotFound(a.address, b.address, ((a.address, b.address),))


class TestEligibility:
    def test_allow_listed_pair_on_testnet(self, testnet_assets):
        cusd, ceur = testnet_assets.get("CUSD"), testnet_assets.get("CEUR")
        simulator = FallbackSimulator()

        result = simulator.simulate(cusd, ceur, 10 * ONE, testnet_env(), _not_found(cusd, ceur))

        assert isinstance(result, SimulatedSwapResult)
        assert result.simulated is True
        assert is_tx_hash(result.swap_tx_hash)

    def test_pair_order_does_not_matter(self, testnet_assets):
        cusd, creal = testnet_assets.get("CUSD"), testnet_assets.get("CREAL")

        result = FallbackSimulator().simulate(
            creal, cusd, ONE, testnet_env(), _not_found(creal, cusd)
        )

        assert isinstance(result, SimulatedSwapResult)

    def test_never_on_mainnet(self, mainnet_assets):
        """Even an allow-listed pair with no route is ineligible off testnet."""
        cusd, ceur = mainnet_assets.get("CUSD"), mainnet_assets.get("CEUR")

        result = FallbackSimulator().simulate(
            cusd, ceur, ONE, mainnet_env(), _not_found(cusd, ceur)
        )

        assert isinstance(result, Ineligible)
        assert not result
        assert "test networks" in result.reason

    def test_pair_not_allow_listed(self, testnet_assets):
        ceur, ckes = testnet_assets.get("CEUR"), testnet_assets.get("CKES")

        result = FallbackSimulator().simulate(
            ceur, ckes, ONE, testnet_env(), _not_found(ceur, ckes)
        )

        assert isinstance(result, Ineligible)

    def test_requires_path_not_found(self, testnet_assets):
        cusd, ceur = testnet_assets.get("CUSD"), testnet_assets.get("CEUR")

        result = FallbackSimulator().simulate(cusd, ceur, ONE, testnet_env(), None)

        assert isinstance(result, Ineligible)

    def test_custom_allow_list(self, testnet_assets):
        ceur, ckes = testnet_assets.get("CEUR"), testnet_assets.get("CKES")
        simulator = FallbackSimulator(allow_list=[("CEUR", "CKES")])

        result = simulator.simulate(ceur, ckes, ONE, testnet_env(), _not_found(ceur, ckes))

        assert isinstance(result, SimulatedSwapResult)


class TestAmounts:
    def test_static_rate_conversion(self, testnet_assets):
        cusd, ceur = testnet_assets.get("CUSD"), testnet_assets.get("CEUR")
        simulator = FallbackSimulator()

        # 108 CUSD at $1 buys 100 CEUR at $1.08
        assert simulator.amount_out(cusd, ceur, 108 * ONE) == 100 * ONE

    def test_rescales_between_decimals(self, testnet_assets):
        usdt, cusd = testnet_assets.get("USDT"), testnet_assets.get("CUSD")
        simulator = FallbackSimulator(allow_list=[("USDT", "CUSD")])

        assert simulator.amount_out(usdt, cusd, 5_000_000) == 5 * ONE
        assert simulator.amount_out(cusd, usdt, 5 * ONE) == 5_000_000

    def test_result_floors(self, testnet_assets):
        cusd, ceur = testnet_assets.get("CUSD"), testnet_assets.get("CEUR")
        simulator = FallbackSimulator(rates={"CUSD": Decimal("1"), "CEUR": Decimal("3")})

        assert simulator.amount_out(cusd, ceur, 10) == 3


class TestSyntheticHash:
    def test_format_matches_real_hashes(self):
        value = synthetic_tx_hash()

        assert value.startswith("0x")
        assert len(value) == 66
        assert is_tx_hash(value)

    def test_results_are_tagged(self, testnet_assets):
        cusd, ceur = testnet_assets.get("CUSD"), testnet_assets.get("CEUR")
        simulator = FallbackSimulator(id_factory=lambda: "0x" + "ab" * 32)

        result = simulator.simulate(cusd, ceur, ONE, testnet_env(), _not_found(cusd, ceur))
        response = result.to_response()

        assert response["simulated"] is True
        assert response["success"] is True
        assert response["swapTxHash"] == "0x" + "ab" * 32
        assert response["notice"] == "SimulatedFallbackUsed"

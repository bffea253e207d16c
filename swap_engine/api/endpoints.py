"""API endpoints for swap quotes."""

import asyncio
from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException

from swap_engine.chains import CHAINS
from swap_engine.config import SwapConfig
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.models.api import QuoteRequest, QuoteResponse
from swap_engine.routing.cache import ExchangeCache
from swap_engine.service import SwapParams, SwapService

logger = structlog.get_logger()

router = APIRouter()

SUPPORTED_NETWORKS = {chain.name for chain in CHAINS.values()}


@lru_cache(maxsize=1)
def _exchange_cache() -> ExchangeCache:
    return ExchangeCache(ttl=SwapConfig.from_env().exchange_cache_ttl)


@lru_cache(maxsize=len(SUPPORTED_NETWORKS))
def _service_for(network: str) -> SwapService:
    return SwapService.for_network(network, cache=_exchange_cache())


def get_service(network: str) -> SwapService:
    """Dependency provider for the per-network swap service.

    Override this in tests to inject a service wired to fakes:
        app.dependency_overrides[get_service] = lambda: service

    Raises:
        HTTPException: 404 for unsupported networks
    """
    if network not in SUPPORTED_NETWORKS:
        raise HTTPException(status_code=404, detail=f"Unsupported network: {network}")
    return _service_for(network)


@router.post("/{network}/quote", response_model_exclude_none=True)
async def quote(
    network: str,
    request: QuoteRequest,
    service: SwapService = Depends(get_service),
) -> QuoteResponse:
    """Quote a swap on a network.

    Error Handling:
        - Invalid request schema: 422 Validation Error (Pydantic)
        - Unsupported network: 404
        - Swap-domain failures (unknown token, no route, RPC faults):
          200 with success=false, errorKind and a user-safe errorMessage
    """
    if network not in SUPPORTED_NETWORKS:
        raise HTTPException(status_code=404, detail=f"Unsupported network: {network}")

    logger.info(
        "received_quote_request",
        network=network,
        from_token=request.from_token,
        to_token=request.to_token,
        amount=request.amount,
        slippage_bps=request.slippage_bps,
    )
    params = SwapParams(
        from_token=request.from_token,
        to_token=request.to_token,
        amount=request.amount,
        slippage_bps=request.slippage_bps,
    )

    try:
        loop = asyncio.get_running_loop()
        estimate = await loop.run_in_executor(None, service.estimate, params)
    except SwapError as e:
        logger.info("quote_failed", network=network, error_kind=e.kind.value, detail=e.detail)
        return QuoteResponse.from_error(e)
    except Exception as e:
        logger.exception("quote_error", network=network)
        return QuoteResponse.from_error(to_swap_error(e, default=ErrorKind.NETWORK_ERROR))

    return QuoteResponse.from_estimate(estimate)

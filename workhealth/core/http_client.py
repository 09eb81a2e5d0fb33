"""Shared HTTP client manager for calendar provider requests.

Keeps one pooled httpx.AsyncClient per client id so repeated day analyses
reuse connections instead of opening a new client per fetch.
"""

import asyncio
import logging
import time
from typing import Optional

import httpx

from .logging_config import get_analysis_id

logger = logging.getLogger(__name__)

# Global state for shared HTTP clients
_shared_clients: dict[str, httpx.AsyncClient] = {}
_client_health: dict[str, dict[str, float]] = {}
_client_lock = asyncio.Lock()

DEFAULT_LIMITS = httpx.Limits(
    max_connections=10,
    max_keepalive_connections=5,
)

DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=30.0,
    write=10.0,
    pool=30.0,
)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "workhealth/1.0",
    "Accept": "application/json",
}

# Recreate client after 3 consecutive errors within 5 minutes
HEALTH_ERROR_THRESHOLD = 3
HEALTH_TIMEOUT_SECONDS = 300


def build_request_headers(extra: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Get default headers with the analysis id for request tracing.

    Args:
        extra: Additional headers merged over the defaults

    Returns:
        Headers dictionary
    """
    headers = DEFAULT_HEADERS.copy()
    analysis_id = get_analysis_id()
    if analysis_id != "no-analysis-id":
        headers["X-Request-ID"] = analysis_id
    if extra:
        headers.update(extra)
    return headers


async def get_shared_client(
    client_id: str = "default",
    limits: Optional[httpx.Limits] = None,
    timeout: Optional[httpx.Timeout] = None,
) -> httpx.AsyncClient:
    """Get or create a shared HTTP client with connection pooling.

    Args:
        client_id: Identifier for the client (allows multiple clients if needed)
        limits: Custom connection limits
        timeout: Custom timeout configuration

    Returns:
        Shared httpx.AsyncClient

    Raises:
        RuntimeError: If client creation fails
    """
    async with _client_lock:
        await _recreate_client_if_unhealthy(client_id)

        if client_id not in _shared_clients or _shared_clients[client_id].is_closed:
            effective_limits = limits or DEFAULT_LIMITS
            effective_timeout = timeout or DEFAULT_TIMEOUT

            logger.debug(
                "Creating shared HTTP client '%s' with limits: max_connections=%d, "
                "max_keepalive=%d",
                client_id,
                effective_limits.max_connections,
                effective_limits.max_keepalive_connections,
            )

            try:
                _shared_clients[client_id] = httpx.AsyncClient(
                    limits=effective_limits,
                    timeout=effective_timeout,
                    follow_redirects=True,
                    headers=DEFAULT_HEADERS,
                )
            except Exception as e:
                logger.exception("Failed to create shared HTTP client '%s'", client_id)
                raise RuntimeError(f"Failed to create shared HTTP client: {e}") from e

            _client_health[client_id] = {
                "error_count": 0,
                "last_error_time": 0,
                "created_time": time.time(),
            }
            logger.info("Created shared HTTP client '%s'", client_id)

        return _shared_clients[client_id]


async def close_all_clients() -> None:
    """Close all shared HTTP clients.

    Called on shutdown so pooled connections are released.
    """
    async with _client_lock:
        for client_id, client in _shared_clients.items():
            try:
                if not client.is_closed:
                    await client.aclose()
                    logger.debug("Closed shared HTTP client '%s'", client_id)
            except Exception as e:
                logger.warning("Error closing shared HTTP client '%s': %s", client_id, e)

        _shared_clients.clear()
        _client_health.clear()
        logger.debug("All shared HTTP clients closed")


async def record_client_error(client_id: str = "default") -> None:
    """Record an error for health tracking.

    Args:
        client_id: Identifier of the client that encountered an error
    """
    async with _client_lock:
        health = _client_health.setdefault(
            client_id,
            {"error_count": 0, "last_error_time": 0, "created_time": time.time()},
        )
        health["error_count"] += 1
        health["last_error_time"] = time.time()

        logger.debug(
            "Recorded error for client '%s', total errors: %d",
            client_id,
            health["error_count"],
        )


async def record_client_success(client_id: str = "default") -> None:
    """Reset the error count after a successful request.

    Args:
        client_id: Identifier of the client that had a successful operation
    """
    async with _client_lock:
        if client_id in _client_health:
            _client_health[client_id]["error_count"] = 0


async def _recreate_client_if_unhealthy(client_id: str) -> None:
    """Drop a client that failed repeatedly so the next call recreates it.

    Must be called with ``_client_lock`` held.
    """
    health = _client_health.get(client_id)
    if health is None:
        return

    should_recreate = (
        health["error_count"] >= HEALTH_ERROR_THRESHOLD
        and (time.time() - health["last_error_time"]) < HEALTH_TIMEOUT_SECONDS
    )

    if should_recreate and client_id in _shared_clients:
        logger.warning(
            "Recreating unhealthy client '%s' due to %d errors in last %d seconds",
            client_id,
            health["error_count"],
            HEALTH_TIMEOUT_SECONDS,
        )

        old_client = _shared_clients.pop(client_id)
        del _client_health[client_id]
        try:
            if not old_client.is_closed:
                await old_client.aclose()
        except Exception as e:
            logger.warning("Error closing unhealthy client '%s': %s", client_id, e)


def get_client_health(client_id: str = "default") -> Optional[dict[str, float]]:
    """Return a copy of the health record for ``client_id``, if tracked."""
    health = _client_health.get(client_id)
    return dict(health) if health is not None else None

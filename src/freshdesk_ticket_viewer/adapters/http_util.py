"""httpx construction shared by upstream adapters."""

from __future__ import annotations

import httpx

# Upper bound for the connect and pool phases; read/write get the full budget.
_MAX_CONNECT_SECONDS = 5.0


def timeouts_for(seconds: float) -> httpx.Timeout:
    total = float(seconds)
    connect = min(_MAX_CONNECT_SECONDS, total)
    return httpx.Timeout(connect=connect, read=total, write=total, pool=connect)


def build_async_client(
    *,
    timeout_seconds: float,
    verify_tls: bool = True,
    trust_env: bool = False,
) -> httpx.AsyncClient:
    """One short-lived client per retrieval; redirects are opted into per request."""
    return httpx.AsyncClient(
        headers={"Accept": "application/json"},
        timeout=timeouts_for(timeout_seconds),
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        verify=verify_tls,
        trust_env=trust_env,
        follow_redirects=False,
    )

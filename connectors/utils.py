"""
Shared HTTP utilities for connectors.

Goals:
- One consistent way to open sessions and read response bodies
- Retry policy belongs to the caller (each connector owns its own attempt loop),
  so sessions created here never retry on their own

Deliberately connector-only:
- NO printing / UI rendering
"""
from __future__ import annotations

import os
from typing import Optional, Tuple

import requests
from requests.adapters import HTTPAdapter

# Default read timeout used across connectors unless overridden.
# Convenience alias: ORCH_HTTP_TIMEOUT (if set, takes precedence).
DEFAULT_TIMEOUT: int = int(os.getenv("ORCH_HTTP_TIMEOUT") or os.getenv("CONNECTOR_HTTP_TIMEOUT_SECONDS") or "30")


def new_session(*, user_agent: Optional[str] = None) -> requests.Session:
    """
    Creates a fresh requests.Session with transport-level retries disabled.

    Callers own the attempt loop, so a retrying adapter would multiply attempts.
    """
    sess = requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=4, pool_maxsize=4)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    if user_agent:
        sess.headers["User-Agent"] = user_agent
    return sess


def timeout_pair(read_timeout: Optional[float], *, connect_timeout: float = 10.0) -> Tuple[float, float]:
    return (float(connect_timeout), float(read_timeout if read_timeout is not None else DEFAULT_TIMEOUT))


def is_html_response(resp: requests.Response) -> bool:
    ct = (resp.headers.get("Content-Type") or "").lower()
    head = (resp.text[:200].lower() if resp.text else "")
    return ("text/html" in ct) or ("text/plain" in ct and "<html" in head)


def body_excerpt(resp: requests.Response, limit: int = 2000) -> str:
    try:
        return (resp.text or "")[:limit]
    except Exception:
        return ""

"""
HTTP Helpers
============

Thin async wrapper over `requests` for the provider calls.

Requests is blocking, so each call runs in a worker thread via
asyncio.to_thread. The session object is injectable; anything with a
requests-compatible `get()` works.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

import requests


logger = logging.getLogger(__name__)


def create_session(user_agent: Optional[str] = None) -> requests.Session:
    """Create a requests session with the package User-Agent."""
    session = requests.Session()
    if user_agent:
        session.headers["User-Agent"] = user_agent
    return session


async def http_get(
    session: Any,
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
) -> requests.Response:
    """
    GET `url` without blocking the event loop.

    Raises:
        requests.RequestException: On network failure or non-2xx status
    """
    response = await asyncio.to_thread(
        session.get,
        url,
        params=params,
        headers=headers,
        timeout=timeout,
    )
    response.raise_for_status()
    return response

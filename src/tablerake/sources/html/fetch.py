"""Fetch a source page within a total deadline.

requests' timeout bounds each connect and each socket read, so a server that
keeps trickling bytes never trips it. The download therefore runs on a daemon
thread and the caller waits at most `timeout` seconds for the whole body.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import Any

import requests

from tablerake.core.config import get_settings
from tablerake.core.errors import FetchFailure
from tablerake.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
CHUNK_SIZE = 64 * 1024


def _download(
    client: Any, url: str, headers: dict[str, str], timeout: float, deadline: float
) -> str:
    response = client.get(url, headers=headers, timeout=timeout, stream=True)
    try:
        response.raise_for_status()
        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                # The caller has given up; stop reading
                raise TimeoutError(f"body not received within {timeout:g}s")
            chunks.append(chunk)
    finally:
        response.close()

    body = b"".join(chunks)
    logger.debug("page_fetched", url=url, status=response.status_code, bytes=len(body))
    return body.decode(response.encoding or "utf-8", errors="replace")


def fetch_markup(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> str:
    """GET a page and return its decoded body.

    Args:
        url: Page to fetch
        timeout: Seconds allowed for the whole request, body included
        session: Optional requests session (connection reuse, tests)

    Returns:
        Response text

    Raises:
        FetchFailure: On any transport error, timeout or non-2xx status
    """
    client = session or requests
    headers = {"User-Agent": get_settings().user_agent}
    deadline = time.monotonic() + timeout
    future: Future[str] = Future()

    def run() -> None:
        try:
            future.set_result(_download(client, url, headers, timeout, deadline))
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=run, name="fetch", daemon=True).start()

    try:
        return future.result(timeout=timeout)
    except (TimeoutError, requests.Timeout) as e:
        raise FetchFailure(url, f"timed out after {timeout:g}s") from e
    except requests.HTTPError as e:
        raise FetchFailure(url, f"HTTP {e.response.status_code}") from e
    except requests.RequestException as e:
        raise FetchFailure(url, str(e)) from e

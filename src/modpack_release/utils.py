"""Utility functions for outbound HTTP requests and content hashing."""

import asyncio
import hashlib
import logging
import pathlib

import httpx
import tenacity

LOGGER = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _is_retryable(response: httpx.Response) -> bool:
    return response.status_code in RETRYABLE_STATUS_CODES


def _last_outcome(retry_state: tenacity.RetryCallState) -> httpx.Response:
    return retry_state.outcome.result()


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    retries: int = 3,
    initial_delay: float = 1.0,
) -> httpx.Response:
    """GET a URL, retrying transport errors and retryable status codes.

    Waits ``initial_delay * 2 ** attempt`` seconds between attempts. The
    response of the final attempt is returned even if it is not successful.

    Raises:
        httpx.TransportError: If the final attempt fails to connect

    """
    retrying = tenacity.AsyncRetrying(
        stop=tenacity.stop_after_attempt(retries + 1),
        wait=tenacity.wait_exponential(multiplier=initial_delay),
        retry=(
            tenacity.retry_if_exception_type(httpx.TransportError)
            | tenacity.retry_if_result(_is_retryable)
        ),
        before_sleep=tenacity.before_sleep_log(LOGGER, logging.WARNING),
        retry_error_callback=_last_outcome,
        sleep=asyncio.sleep,
    )
    return await retrying(client.get, url)


def hash_directory_files(
    root: pathlib.Path, directories: list[str]
) -> dict[str, str]:
    """Return the sha256 of every file below the given directories.

    Keys are POSIX paths relative to ``root``. Missing directories are
    skipped.
    """
    digests: dict[str, str] = {}
    for directory in directories:
        base = root / directory
        if not base.is_dir():
            continue
        for path in sorted(base.rglob('*')):
            if path.is_file():
                digests[path.relative_to(root).as_posix()] = hashlib.sha256(
                    path.read_bytes()
                ).hexdigest()
    return digests

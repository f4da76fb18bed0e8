"""Upstream liveness check performed before any build work starts."""

import logging

import httpx

from modpack_release import errors, models, utils

LOGGER = logging.getLogger(__name__)


async def check_upstream_available(
    config: models.UpstreamConfiguration,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Probe the upstream endpoint, failing the run if it is unreachable.

    Raises:
        UpstreamUnavailable: If the endpoint does not respond with a success
            status once retries are exhausted

    """
    LOGGER.info('Checking upstream availability at %s', config.url)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.timeout)
    try:
        response = await utils.fetch_with_retry(
            client, config.url, config.retries, config.initial_delay
        )
    except httpx.HTTPError as exc:
        LOGGER.error('Failed to reach upstream %s: %s', config.url, exc)
        raise errors.UpstreamUnavailable(config.url, str(exc)) from exc
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        LOGGER.error(
            'Upstream %s returned status %d', config.url, response.status_code
        )
        raise errors.UpstreamUnavailable(
            config.url, f'status {response.status_code}'
        )
    LOGGER.info('Upstream is reachable')

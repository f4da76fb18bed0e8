"""Discovery of the Minecraft versions the modpack is built for."""

import logging

import httpx
import pydantic

from modpack_release import errors, models, utils

LOGGER = logging.getLogger(__name__)


class GameVersion(pydantic.BaseModel):
    """A game version as reported by the Modrinth tag API."""

    version: str
    version_type: str
    major: bool = False


def version_key(version: str) -> tuple[int, ...]:
    """Sort key for dotted numeric game versions such as ``1.20.4``."""
    parts = []
    for part in version.split('.'):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(-1)
    return tuple(parts)


def compare_game_versions(a: str, b: str) -> int:
    """Compare two game versions, padding missing components with zero."""
    key_a, key_b = version_key(a), version_key(b)
    width = max(len(key_a), len(key_b))
    key_a += (0,) * (width - len(key_a))
    key_b += (0,) * (width - len(key_b))
    return (key_a > key_b) - (key_a < key_b)


async def list_target_versions(
    config: models.DiscoveryConfiguration,
    client: httpx.AsyncClient | None = None,
) -> list[str]:
    """Return the supported target versions, oldest first.

    Raises:
        DiscoveryError: If the versions can not be retrieved

    """
    if config.target_versions:
        LOGGER.debug('Using configured target versions')
        return list(config.target_versions)

    url = f'{config.api_url.rstrip("/")}/v2/tag/game_version'
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.timeout)
    try:
        response = await utils.fetch_with_retry(client, url, config.retries)
        response.raise_for_status()
        game_versions = pydantic.TypeAdapter(
            list[GameVersion]
        ).validate_python(response.json())
    except (httpx.HTTPError, ValueError) as exc:
        raise errors.DiscoveryError(
            f'Failed to fetch game versions from {url}: {exc}'
        ) from exc
    finally:
        if owns_client:
            await client.aclose()

    versions = sorted(
        {
            game_version.version
            for game_version in game_versions
            if game_version.version_type == 'release'
            and compare_game_versions(
                game_version.version, config.minimum_version
            )
            >= 0
        },
        key=version_key,
    )
    LOGGER.info(
        'Found %d release versions >= %s',
        len(versions),
        config.minimum_version,
    )
    return versions

"""Configuration models with Pydantic validation.

Defines the configuration for git operations, the upstream liveness probe,
target version discovery, packwiz execution and build output. All models
use Pydantic for validation with environment variable defaults where a
value is commonly provided by the CI environment.
"""

import logging
import os
import pathlib
import tomllib
import typing

import pydantic

from modpack_release import errors

LOGGER = logging.getLogger(__name__)


class GitConfiguration(pydantic.BaseModel):
    """Git configuration for commits, pushes and tags.

    The remote and branch are used both for pushing and for resolving the
    remote-tracking head (``{remote}/{branch}``).
    """

    remote: str = 'origin'
    branch: str = 'main'
    commit_author: str | None = None
    commit_message: str = 'Update modpack for Minecraft {target_version}'
    tag_message: str = (
        'Release modpack v{package_version} for Minecraft {target_version}'
    )
    resync_tag_message: str = (
        'Release modpack v{package_version} for Minecraft {target_version} '
        '(no changes from previous version)'
    )


class UpstreamConfiguration(pydantic.BaseModel):
    """Upstream liveness probe performed before any build work."""

    url: str = (
        'https://launchermeta.mojang.com/mc/game/version_manifest.json'
    )
    retries: int = pydantic.Field(default=1, ge=0)
    initial_delay: float = pydantic.Field(default=1.0, ge=0)
    timeout: float = pydantic.Field(default=30.0, gt=0)


class DiscoveryConfiguration(pydantic.BaseModel):
    """Target version discovery settings.

    When ``target_versions`` is set the remote API is not consulted.
    """

    api_url: str = 'https://api.modrinth.com'
    minimum_version: str = '1.14'
    target_versions: list[str] | None = None
    retries: int = pydantic.Field(default=3, ge=0)
    timeout: float = pydantic.Field(default=30.0, gt=0)

    @pydantic.model_validator(mode='before')
    @classmethod
    def _set_api_url_from_env(cls, data: typing.Any) -> typing.Any:
        if isinstance(data, dict) and 'api_url' not in data:
            env_url = os.environ.get('MODRINTH_API_URL')
            if env_url:
                data['api_url'] = env_url
        return data


class PackwizConfiguration(pydantic.BaseModel):
    """Packwiz executable and rate-limit retry settings."""

    executable: str = 'packwiz'
    max_retries: int = pydantic.Field(default=12, ge=0)
    initial_delay: float = pydantic.Field(default=1.0, ge=0)


class BuildConfiguration(pydantic.BaseModel):
    """Build and output settings for the modpack working tree."""

    working_directory: pathlib.Path = pathlib.Path('.')
    pack_name: str = 'Sodium Vanilla'
    content_manifest: pathlib.Path = pathlib.Path('content.toml')
    state_file: pathlib.Path = pathlib.Path('installation-state.json')
    readme_template: pathlib.Path | None = None
    readme_output: pathlib.Path = pathlib.Path('README.md')
    content_directories: list[str] = pydantic.Field(
        default_factory=lambda: ['mods', 'resourcepacks']
    )
    restricted_categories: set[str] = pydantic.Field(
        default_factory=lambda: {'cheating'}
    )


class Configuration(pydantic.BaseModel):
    """Main application configuration.

    Root configuration object combining all section configurations with the
    settings for the initial package version and ad hoc single-target builds.
    """

    build: BuildConfiguration = pydantic.Field(
        default_factory=BuildConfiguration
    )
    discovery: DiscoveryConfiguration = pydantic.Field(
        default_factory=DiscoveryConfiguration
    )
    git: GitConfiguration = pydantic.Field(default_factory=GitConfiguration)
    initial_version: str = '0.1.0'
    packwiz: PackwizConfiguration = pydantic.Field(
        default_factory=PackwizConfiguration
    )
    target_version: str | None = None
    upstream: UpstreamConfiguration = pydantic.Field(
        default_factory=UpstreamConfiguration
    )

    @pydantic.model_validator(mode='before')
    @classmethod
    def _set_target_version_from_env(cls, data: typing.Any) -> typing.Any:
        if isinstance(data, dict) and 'target_version' not in data:
            env_version = os.environ.get('MC_VERSION')
            if env_version:
                data['target_version'] = env_version
        return data

    @classmethod
    def load(cls, path: pathlib.Path | None) -> 'Configuration':
        """Load configuration from a TOML file.

        A missing file yields the default configuration.

        Raises:
            ConfigurationError: If the file is not valid TOML or fails
                validation

        """
        if path is None or not path.exists():
            LOGGER.debug('No configuration file found, using defaults')
            return cls.model_validate({})
        try:
            with path.open('rb') as handle:
                data = tomllib.load(handle)
            return cls.model_validate(data)
        except (tomllib.TOMLDecodeError, pydantic.ValidationError) as exc:
            raise errors.ConfigurationError(
                f'Invalid configuration in {path}: {exc}'
            ) from exc

"""Package version arithmetic and release tag parsing.

Package versions are plain ``major.minor.patch`` semantic versions without
pre-release or build metadata. The patch component is the only one that is
ever incremented automatically.
"""

import logging

import semver

from modpack_release import errors, models

LOGGER = logging.getLogger(__name__)

ZERO = semver.Version(0, 0, 0)


def parse_version(value: str) -> semver.Version | None:
    """Parse a ``major.minor.patch`` version, returning None if malformed."""
    try:
        version = semver.Version.parse(value)
    except (TypeError, ValueError):
        return None
    if version.prerelease or version.build:
        return None
    return version


def parse_tag(name: str) -> models.ReleaseTag | None:
    """Parse a release tag name into its target and package version.

    The package version never contains the delimiter, so the name is split
    on the last occurrence and target versions may themselves contain it.
    Returns None for anything that is not a well-formed release tag.
    """
    target_version, delimiter, version = name.rpartition(models.TAG_DELIMITER)
    if not delimiter or not target_version:
        return None
    package_version = parse_version(version)
    if package_version is None:
        return None
    return models.ReleaseTag(
        target_version=target_version, package_version=package_version
    )


def require_tag(name: str) -> models.ReleaseTag:
    """Parse a tag name that is expected to be well formed.

    Raises:
        TagParseError: If the name is not a release tag

    """
    tag = parse_tag(name)
    if tag is None:
        raise errors.TagParseError(name)
    return tag


def format_tag(
    target_version: str, package_version: semver.Version | str
) -> str:
    """Return the tag name for a target and package version."""
    return f'{target_version}{models.TAG_DELIMITER}{package_version}'


def compare(a: semver.Version, b: semver.Version) -> int:
    """Compare two versions component-wise, returning -1, 0 or 1."""
    return a.compare(b)


def increment_patch(version: semver.Version) -> semver.Version:
    """Return the version with its patch component incremented."""
    return version.bump_patch()

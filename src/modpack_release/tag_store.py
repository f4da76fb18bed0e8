"""Durable release tag storage backed by git tags.

Each release of a target version is an annotated tag named
``{target_version}_{package_version}`` bound to the commit that produced it.
Tags that do not parse as release tags are ignored when listing.
"""

import logging

import semver

from modpack_release import errors, git, models, versioning

LOGGER = logging.getLogger(__name__)


def _latest(tags: list[models.ReleaseTag]) -> models.ReleaseTag | None:
    """Highest package version; equal versions break on the tag name."""
    if not tags:
        return None
    return max(tags, key=lambda tag: (tag.package_version, tag.name))


class VersionTagStore:
    """Finds, creates and publishes release tags in a repository."""

    def __init__(self, repository: git.Repository) -> None:
        self.repository = repository

    async def tags(self) -> list[models.ReleaseTag]:
        """Return every well-formed release tag in the repository."""
        tags = []
        for name in await self.repository.list_tags():
            tag = versioning.parse_tag(name)
            if tag is None:
                LOGGER.debug('Ignoring non-release tag %s', name)
                continue
            tags.append(tag)
        return tags

    async def find_latest(
        self, target_version: str
    ) -> models.ReleaseTag | None:
        """Return the highest release tag for a target version, if any."""
        names = await self.repository.list_tags(
            versioning.format_tag(target_version, '*')
        )
        tags = []
        for name in names:
            tag = versioning.parse_tag(name)
            if tag is None or tag.target_version != target_version:
                continue
            tags.append(tag)
        return _latest(tags)

    async def find_highest_global(self) -> semver.Version:
        """Return the highest package version across all targets.

        Returns ``0.0.0`` when no release tags exist.
        """
        return max(
            (tag.package_version for tag in await self.tags()),
            default=versioning.ZERO,
        )

    async def create(
        self, tag: models.ReleaseTag, message: str, commit: str
    ) -> None:
        """Create a tag bound to an existing commit.

        The tag is only created locally; callers push it with ``push`` or
        flush all pending tags with ``push_all``.

        Raises:
            TagConflict: If a tag with the same name already exists

        """
        if await self.repository.tag_exists(tag.name):
            raise errors.TagConflict(tag.name)
        await self.repository.create_annotated_tag(tag.name, message, commit)
        LOGGER.debug('Created tag %s at %s', tag.name, commit)

    async def get_commit(self, tag: models.ReleaseTag) -> str:
        """Resolve a tag to the commit it points at.

        Raises:
            TagNotFound: If the tag does not exist

        """
        if not await self.repository.tag_exists(tag.name):
            raise errors.TagNotFound(tag.name)
        return await self.repository.rev_parse(f'refs/tags/{tag.name}')

    async def push(self, tag: models.ReleaseTag) -> None:
        await self.repository.push_tag(tag.name)

    async def push_all(self) -> None:
        await self.repository.push_tags()

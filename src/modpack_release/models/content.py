"""Content manifest and installation outcome models.

The content manifest lists the mods and resource packs installed into the
modpack. The installation outcome is the builder's report of what was
installed and is persisted between runs to detect content drift.
"""

import enum
import logging
import pathlib
import tomllib

import pydantic

from modpack_release import errors

LOGGER = logging.getLogger(__name__)


class InstallMethod(enum.StrEnum):
    """Package sources supported by the builder."""

    modrinth = 'modrinth'
    curseforge = 'curseforge'


class Variant(enum.StrEnum):
    """Exported modpack variants.

    The restricted variant omits content in restricted categories, the
    complete variant includes everything in the manifest.
    """

    restricted = 'safe'
    complete = 'full'


class ContentReference(pydantic.BaseModel):
    """A single installable content item."""

    identifier: str
    method: InstallMethod = InstallMethod.modrinth


class ContentDefinition(ContentReference):
    """A content item with its category and ordered alternatives."""

    category: str | None = None
    alternatives: list[ContentReference] = pydantic.Field(
        default_factory=list
    )


class ContentManifest(pydantic.BaseModel):
    """Mods and resource packs to install for every target version."""

    mods: list[ContentDefinition] = pydantic.Field(default_factory=list)
    resource_packs: list[ContentDefinition] = pydantic.Field(
        default_factory=list
    )

    @pydantic.model_validator(mode='after')
    def _check_duplicates(self) -> 'ContentManifest':
        for field in ('mods', 'resource_packs'):
            seen: set[str] = set()
            duplicates: list[str] = []
            for item in getattr(self, field):
                if item.identifier in seen:
                    duplicates.append(item.identifier)
                seen.add(item.identifier)
            if duplicates:
                raise ValueError(
                    f'Duplicate identifiers found in {field}: '
                    f'{", ".join(duplicates)}'
                )
        return self

    def for_variant(
        self, variant: Variant, restricted_categories: set[str]
    ) -> 'ContentManifest':
        """Return the manifest for a variant."""
        if variant == Variant.complete:
            return self
        return ContentManifest(
            mods=[
                mod
                for mod in self.mods
                if mod.category not in restricted_categories
            ],
            resource_packs=self.resource_packs,
        )

    @classmethod
    def load(cls, path: pathlib.Path) -> 'ContentManifest':
        """Load the manifest from a TOML file.

        Raises:
            ConfigurationError: If the file is missing, unparseable or
                contains duplicate identifiers

        """
        try:
            with path.open('rb') as handle:
                data = tomllib.load(handle)
        except FileNotFoundError as exc:
            raise errors.ConfigurationError(
                f'Content manifest not found: {path}'
            ) from exc
        except tomllib.TOMLDecodeError as exc:
            raise errors.ConfigurationError(
                f'Invalid content manifest {path}: {exc}'
            ) from exc
        try:
            manifest = cls.model_validate(data)
        except pydantic.ValidationError as exc:
            raise errors.ConfigurationError(
                f'Invalid content manifest {path}: {exc}'
            ) from exc
        LOGGER.debug(
            'Loaded %d mods and %d resource packs from %s',
            len(manifest.mods),
            len(manifest.resource_packs),
            path,
        )
        return manifest


class InstallationOutcome(pydantic.BaseModel):
    """Builder report of one installation pass.

    ``failed`` carries the alternatives that failed or were skipped for
    each item, ``alternatives_used`` carries the alternative that was
    installed in place of the original item. ``content`` maps each tracked
    content file (relative path) to its sha256 digest.
    """

    succeeded: list[ContentDefinition] = pydantic.Field(default_factory=list)
    failed: list[ContentDefinition] = pydantic.Field(default_factory=list)
    alternatives_used: list[ContentDefinition] = pydantic.Field(
        default_factory=list
    )
    content: dict[str, str] = pydantic.Field(default_factory=dict)

    def fingerprint(self) -> dict[str, object]:
        """Order-independent structural view used for change detection."""
        return {
            'succeeded': sorted(
                (item.method.value, item.identifier) for item in self.succeeded
            ),
            'failed': sorted(
                (item.method.value, item.identifier) for item in self.failed
            ),
            'alternatives_used': sorted(
                (
                    item.identifier,
                    tuple(alt.identifier for alt in item.alternatives),
                )
                for item in self.alternatives_used
            ),
            'content': dict(sorted(self.content.items())),
        }

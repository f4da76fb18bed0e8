"""Release tag, per-target outcome and run result models."""

import enum
import typing

import pydantic
import semver

TAG_DELIMITER = '_'


class ReleaseStatus(enum.StrEnum):
    """Terminal state of one target version in a reconciliation run."""

    new = 'new'
    changed = 'changed'
    unchanged = 'unchanged'
    error = 'error'


class ReleaseTag(pydantic.BaseModel):
    """Binding of a target version and package version to a tag name.

    Tag names have the form ``{target_version}_{package_version}``.
    """

    model_config = pydantic.ConfigDict(
        arbitrary_types_allowed=True, frozen=True
    )

    target_version: str
    package_version: semver.Version

    @pydantic.field_validator('package_version', mode='before')
    @classmethod
    def _parse_package_version(cls, value: typing.Any) -> typing.Any:
        if isinstance(value, str):
            return semver.Version.parse(value)
        return value

    @property
    def name(self) -> str:
        return (
            f'{self.target_version}{TAG_DELIMITER}{self.package_version}'
        )

    def __str__(self) -> str:
        return self.name


class BuildOutcome(pydantic.BaseModel):
    """Result of reconciling one target version.

    Tags are recorded by name. ``commit`` is the commit the new tag is bound
    to for new and changed targets, and the commit of the previous tag for
    unchanged targets.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    target_version: str
    status: ReleaseStatus
    previous_tag: str | None = None
    new_tag: str | None = None
    commit: str | None = None
    error: str | None = None

    @property
    def released(self) -> bool:
        return self.status in (ReleaseStatus.new, ReleaseStatus.changed)


class RunResult(pydantic.BaseModel):
    """Aggregate of all outcomes of one reconciliation run.

    ``package_version`` is the run's global version, set once every target
    has been processed and only when at least one target was released.
    ``resync_tags`` holds the tags created for unchanged targets.
    """

    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True)

    seed_version: semver.Version
    package_version: semver.Version | None = None
    outcomes: list[BuildOutcome] = pydantic.Field(default_factory=list)
    resync_tags: list[str] = pydantic.Field(default_factory=list)

    @property
    def changes_occurred(self) -> bool:
        return any(outcome.released for outcome in self.outcomes)

    @property
    def released(self) -> list[BuildOutcome]:
        return [outcome for outcome in self.outcomes if outcome.released]

    @property
    def unchanged(self) -> list[BuildOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if outcome.status == ReleaseStatus.unchanged
        ]

    @property
    def errors(self) -> list[BuildOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if outcome.status == ReleaseStatus.error
        ]

    def release_manifest(self) -> list[dict[str, str | None]]:
        """Releases eligible for publishing, in discovery order."""
        return [
            {
                'target_version': outcome.target_version,
                'status': outcome.status.value,
                'tag': outcome.new_tag,
                'commit': outcome.commit,
            }
            for outcome in self.released
        ]

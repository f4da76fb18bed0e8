"""Exception hierarchy for release reconciliation.

Per-target failures (tag conflicts, export failures, git failures) are
isolated by the reconciler and recorded on the target's outcome. Upstream
unavailability, discovery failures and corrupt tags created during the
run abort the whole run.
"""

import typing

if typing.TYPE_CHECKING:
    from modpack_release import models


class ModpackReleaseError(Exception):
    """Base class for all modpack-release errors."""


class ConfigurationError(ModpackReleaseError):
    """Raised when configuration or the content manifest is invalid."""


class UpstreamUnavailable(ModpackReleaseError):  # noqa: N818
    """Raised when the upstream service does not respond successfully."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f'Upstream {url} is unavailable: {reason}')
        self.url = url
        self.reason = reason


class DiscoveryError(ModpackReleaseError):
    """Raised when the list of target versions can not be retrieved."""


class TagParseError(ModpackReleaseError):
    """Raised when a tag name is not a well-formed release tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(f'Failed to parse release tag: {tag!r}')
        self.tag = tag


class TagConflict(ModpackReleaseError):  # noqa: N818
    """Raised when creating a tag whose name already exists."""

    def __init__(self, tag: str) -> None:
        super().__init__(f'Tag {tag} already exists')
        self.tag = tag


class TagNotFound(ModpackReleaseError):  # noqa: N818
    """Raised when resolving a tag that does not exist."""

    def __init__(self, tag: str) -> None:
        super().__init__(f'Tag {tag} not found')
        self.tag = tag


class BuildExportFailure(ModpackReleaseError):  # noqa: N818
    """Raised when a variant of the modpack could not be exported."""

    def __init__(self, target_version: str, variant: str) -> None:
        super().__init__(
            f'Failed to export {variant} variant for {target_version}'
        )
        self.target_version = target_version
        self.variant = variant


class GitCommandError(ModpackReleaseError):
    """Raised when a git subprocess exits with a non-zero status."""

    def __init__(
        self, command: list[str], returncode: int, stdout: str, stderr: str
    ) -> None:
        super().__init__(
            f'git {" ".join(command)} failed with exit code {returncode}: '
            f'{stderr.strip() or stdout.strip()}'
        )
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class PackwizCommandError(ModpackReleaseError):
    """Raised when a required packwiz command fails."""

    def __init__(self, args: list[str], output: str) -> None:
        super().__init__(f'packwiz {" ".join(args)} failed: {output}')
        self.args_ = args
        self.output = output


class ReleaseRunFailed(ModpackReleaseError):  # noqa: N818
    """Raised after reporting when one or more targets errored."""

    def __init__(self, errors: list['models.BuildOutcome']) -> None:
        super().__init__(
            f'Release run completed with {len(errors)} error(s)'
        )
        self.errors = errors


class WorkspaceBusy(ModpackReleaseError):  # noqa: N818
    """Raised when the shared working tree is already in use."""

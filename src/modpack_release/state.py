"""Persistence of installation state in the modpack working tree.

The installation outcome of the most recent build is written to a JSON file
inside the working tree so that it is committed alongside the content it
describes. The state recorded for a previous release is read back from the
file as it exists at that release's tag.
"""

import json
import logging
import pathlib

import pydantic

from modpack_release import git, models

LOGGER = logging.getLogger(__name__)


class StatePersistence:
    """Reads and writes the installation state file."""

    def __init__(
        self, repository: git.Repository, state_file: pathlib.Path
    ) -> None:
        self.repository = repository
        self.state_file = state_file

    @property
    def path(self) -> pathlib.Path:
        return self.repository.working_directory / self.state_file

    def save(self, outcome: models.InstallationOutcome) -> bool:
        """Write the installation outcome to the state file.

        Returns False, after logging, when the file could not be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                outcome.model_dump_json(indent=2) + '\n', encoding='utf-8'
            )
        except OSError as exc:
            LOGGER.warning(
                'Failed to save installation state to %s: %s', self.path, exc
            )
            return False
        LOGGER.debug('Saved installation state to %s', self.path)
        return True

    async def load_at(
        self, tag: models.ReleaseTag
    ) -> models.InstallationOutcome | None:
        """Return the installation state recorded at a release tag.

        Returns None when the tag has no state file or the recorded state
        can not be parsed, both of which are treated as "no previous state".
        """
        content = await self.repository.show_file(
            f'refs/tags/{tag.name}', self.state_file
        )
        if content is None:
            return None
        try:
            return models.InstallationOutcome.model_validate(
                json.loads(content)
            )
        except (json.JSONDecodeError, pydantic.ValidationError) as err:
            LOGGER.warning(
                'Installation state at %s is corrupted, ignoring: %s',
                tag.name,
                err,
            )
            return None

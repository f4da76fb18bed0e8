"""Detects content drift between builds of the same target version."""

import logging

from modpack_release import models, state, tag_store

LOGGER = logging.getLogger(__name__)


class ChangeDetector:
    """Compares a fresh installation state with the previous release's.

    The previous state is the one recorded at the latest release tag of the
    same target version. A target without a previous state always needs an
    update.
    """

    def __init__(
        self,
        persistence: state.StatePersistence,
        store: tag_store.VersionTagStore,
    ) -> None:
        self.persistence = persistence
        self.store = store

    async def needs_update(
        self, target_version: str, outcome: models.InstallationOutcome
    ) -> bool:
        latest = await self.store.find_latest(target_version)
        if latest is None:
            LOGGER.debug('%s has no previous release', target_version)
            return True
        previous = await self.persistence.load_at(latest)
        if previous is None:
            LOGGER.debug(
                '%s has no recorded state at %s', target_version, latest
            )
            return True
        current_fingerprint = outcome.fingerprint()
        previous_fingerprint = previous.fingerprint()
        for key, value in current_fingerprint.items():
            if previous_fingerprint.get(key) != value:
                LOGGER.debug(
                    '%s %s differs from %s', target_version, key, latest
                )
                return True
        return False

"""Builds and exports the modpack for one target version with packwiz."""

import logging
import pathlib
import re
import shutil

from modpack_release import errors, mixins, models, packwiz, utils

LOGGER = logging.getLogger(__name__)

EXPORT_PATTERN = re.compile(r'to\s+(.+\.mrpack)', re.IGNORECASE)


class Builder(mixins.LoggerMixin):
    """Installs content into the working tree and exports variants.

    The working tree is shared by every target version, so installation
    always starts by clearing previously installed content.
    """

    def __init__(
        self,
        config: models.Configuration,
        working_directory: pathlib.Path,
        verbose: bool = False,
    ) -> None:
        super().__init__(verbose)
        self.config = config
        self.working_directory = working_directory
        self.packwiz = packwiz.Packwiz(config.packwiz, working_directory)

    def _clean(self) -> None:
        for directory in self.config.build.content_directories:
            shutil.rmtree(
                self.working_directory / directory, ignore_errors=True
            )
        for path in self.working_directory.glob('*.mrpack'):
            path.unlink(missing_ok=True)
            self.logger.debug('Deleted %s', path.name)

    async def _require(self, *args: str) -> None:
        result = await self.packwiz.execute(*args)
        if not result.success:
            raise errors.PackwizCommandError(list(args), result.output)

    async def _add(self, item: models.ContentReference) -> bool:
        result = await self.packwiz.execute(
            item.method.value, 'add', item.identifier, '-y'
        )
        if not result.success:
            self.logger.debug(
                'Failed to install %s: %s', item.identifier, result.output
            )
        return result.success

    async def install(
        self, manifest: models.ContentManifest, target_version: str
    ) -> models.InstallationOutcome:
        """Install the manifest's content for a target version.

        Items that fail are retried with their alternatives in order. The
        first alternative that installs is recorded in
        ``alternatives_used``; every item that did not install itself is
        recorded in ``failed`` with the alternatives that failed or were
        skipped.

        Raises:
            PackwizCommandError: If refreshing the index or migrating to the
                target version fails

        """
        self._clean()
        await self._require('refresh')
        await self._require('migrate', 'minecraft', target_version, '-y')
        self._log_verbose_info('Migrated to Minecraft %s', target_version)

        outcome = models.InstallationOutcome()
        for mod in manifest.mods:
            if await self._add(mod):
                outcome.succeeded.append(mod)
                continue
            installed: models.ContentReference | None = None
            remaining: list[models.ContentReference] = []
            for index, alternative in enumerate(mod.alternatives):
                if await self._add(alternative):
                    installed = alternative
                    remaining.extend(mod.alternatives[index + 1 :])
                    break
                remaining.append(alternative)
            if installed:
                self.logger.info(
                    'Installed %s in place of %s',
                    installed.identifier,
                    mod.identifier,
                )
                outcome.alternatives_used.append(
                    mod.model_copy(update={'alternatives': [installed]})
                )
            else:
                self.logger.warning('Failed to install %s', mod.identifier)
            outcome.failed.append(
                mod.model_copy(update={'alternatives': remaining})
            )

        for pack in manifest.resource_packs:
            if not await self._add(pack):
                self.logger.warning(
                    'Failed to install resource pack %s', pack.identifier
                )

        outcome.content = utils.hash_directory_files(
            self.working_directory, self.config.build.content_directories
        )
        self._log_verbose_info(
            'Installed %d mods for %s (%d failed, %d alternatives)',
            len(outcome.succeeded),
            target_version,
            len(outcome.failed),
            len(outcome.alternatives_used),
        )
        return outcome

    async def export(
        self,
        variant: models.Variant,
        package_version: str,
        target_version: str,
    ) -> str | None:
        """Export the installed pack and rename it for the release.

        The exported file is named
        ``{pack_name}-{target_version}_{package_version}_{variant}.mrpack``.
        Returns the new file name, or None if the export or rename failed.
        """
        result = await self.packwiz.execute('modrinth', 'export')
        if not result.success:
            self.logger.error('Failed to export modpack: %s', result.output)
            return None

        match = EXPORT_PATTERN.search(result.output)
        if not match:
            self.logger.error('Could not determine exported filename')
            return None

        exported = self.working_directory / match.group(1).strip()
        if not exported.exists():
            self.logger.error('Exported file not found: %s', exported)
            return None

        filename = (
            f'{self.config.build.pack_name}-{target_version}_'
            f'{package_version}_{variant.value}.mrpack'
        )
        try:
            exported.rename(self.working_directory / filename)
        except OSError as exc:
            self.logger.error('Failed to rename %s: %s', exported.name, exc)
            return None
        self._log_verbose_info('Exported %s', filename)
        return filename

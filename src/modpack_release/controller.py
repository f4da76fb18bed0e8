"""Release automation controller.

Wires the configured collaborators together and drives the two phases of a
release: checking and tagging every target version, then handing the
released targets to the downstream publish stage. Also drives ad hoc
single-target builds.
"""

import json
import logging
import pathlib

from modpack_release import (
    builder,
    change_detector,
    discovery,
    errors,
    git,
    mixins,
    models,
    readme,
    reconciler,
    state,
    sync_gate,
    tag_store,
)

LOGGER = logging.getLogger(__name__)
SEPARATOR = '=' * 79


class ReleaseController(mixins.LoggerMixin):
    """Runs release phases against the configured working tree."""

    def __init__(
        self, config: models.Configuration, verbose: bool = False
    ) -> None:
        super().__init__(verbose)
        self.config = config
        self.working_directory = config.build.working_directory.resolve()
        self.repository = git.Repository(
            self.working_directory,
            remote=config.git.remote,
            branch=config.git.branch,
            commit_author=config.git.commit_author,
        )
        self.builder = builder.Builder(
            config, self.working_directory, verbose
        )
        self.store = tag_store.VersionTagStore(self.repository)
        self.persistence = state.StatePersistence(
            self.repository, config.build.state_file
        )

    def _load_manifest(self) -> models.ContentManifest:
        return models.ContentManifest.load(
            self.working_directory / self.config.build.content_manifest
        )

    def _reconciler(self) -> reconciler.ReleaseReconciler:
        workspace = reconciler.Workspace(
            repository=self.repository,
            builder=self.builder,
            persistence=self.persistence,
            doc_generator=readme.DocGenerator(
                self.config.build, self.working_directory
            ),
            manifest=self._load_manifest(),
        )
        return reconciler.ReleaseReconciler(
            self.config,
            workspace,
            self.store,
            change_detector.ChangeDetector(self.persistence, self.store),
            self.verbose,
        )

    async def check_and_tag(
        self, release_manifest: pathlib.Path | None = None
    ) -> bool:
        """Phase 1: reconcile every target version and tag releases.

        Returns:
            True if at least one target version was released

        Raises:
            UpstreamUnavailable: If the upstream check fails
            DiscoveryError: If target versions can not be discovered
            ReleaseRunFailed: If any target version errored

        """
        self.logger.info('PHASE 1: CHECK AND TAG')
        await sync_gate.check_upstream_available(self.config.upstream)
        target_versions = await discovery.list_target_versions(
            self.config.discovery
        )
        result = await self._reconciler().reconcile(target_versions)
        self.report(result)
        if release_manifest:
            self.write_release_manifest(result, release_manifest)
        if result.errors:
            raise errors.ReleaseRunFailed(result.errors)
        return result.changes_occurred

    async def auto_update(self, release_manifest: pathlib.Path) -> bool:
        """Run phase 1 and hand released targets to the publish stage."""
        changes_occurred = await self.check_and_tag(release_manifest)
        if not changes_occurred:
            self.logger.info(
                'No changes detected, skipping phase 2 (publishing)'
            )
            return False
        self.logger.info(
            'PHASE 2: releases ready for publishing in %s', release_manifest
        )
        return True

    async def build(
        self, target_version: str, variant: models.Variant
    ) -> str:
        """Install and export one variant for a single target version.

        Raises:
            BuildExportFailure: If the export fails

        """
        self.logger.info(
            'Building %s variant for Minecraft %s',
            variant.name,
            target_version,
        )
        manifest = self._load_manifest().for_variant(
            variant, self.config.build.restricted_categories
        )
        outcome = await self.builder.install(manifest, target_version)
        self.logger.info(
            'Installed %d mods, %d alternatives, %d failed',
            len(outcome.succeeded),
            len(outcome.alternatives_used),
            len(outcome.failed),
        )
        for item in outcome.alternatives_used:
            self.logger.info(
                '  %s -> %s',
                item.identifier,
                item.alternatives[0].identifier,
            )
        for item in outcome.failed:
            self.logger.warning('  failed: %s', item.identifier)

        latest = await self.store.find_latest(target_version)
        package_version = (
            str(latest.package_version)
            if latest
            else self.config.initial_version
        )
        exported = await self.builder.export(
            variant, package_version, target_version
        )
        if not exported:
            raise errors.BuildExportFailure(target_version, variant.value)
        self.logger.info('Exported file: %s', exported)
        return exported

    def report(self, result: models.RunResult) -> None:
        """Log the end-of-run summary."""
        self.logger.info(SEPARATOR)
        self.logger.info('SUMMARY')
        self.logger.info(SEPARATOR)
        self.logger.info(
            'Total versions processed: %d', len(result.outcomes)
        )
        self.logger.info('Changed: %d', len(result.released))
        self.logger.info('Unchanged: %d', len(result.unchanged))
        self.logger.info('Errors: %d', len(result.errors))
        if result.package_version:
            self.logger.info('Package version: %s', result.package_version)

        if result.released:
            self.logger.info('Versions with changes (to be published):')
            for outcome in result.released:
                self.logger.info(
                    '  - %s -> %s', outcome.target_version, outcome.new_tag
                )
        if result.resync_tags:
            self.logger.info('Versions without changes (tagged only):')
            for tag in result.resync_tags:
                self.logger.info('  - %s', tag)
        for outcome in result.errors:
            self.logger.error(
                '  %s: %s', outcome.target_version, outcome.error
            )

    def write_release_manifest(
        self, result: models.RunResult, path: pathlib.Path
    ) -> None:
        """Write the releases eligible for publishing as JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    'package_version': (
                        str(result.package_version)
                        if result.package_version
                        else None
                    ),
                    'releases': result.release_manifest(),
                },
                indent=2,
            )
            + '\n',
            encoding='utf-8',
        )
        self.logger.debug('Wrote release manifest to %s', path)

"""Release reconciliation across every supported target version.

For each target version the reconciler builds both modpack variants,
decides whether the content changed since the target's latest release, and
commits, tags and pushes new releases. Once every target is processed, the
targets whose content did not change are re-tagged at the run's global
package version, pointing at their existing commit, so that all targets
share one release line.

Targets are processed strictly one at a time because they share a single
working tree and git checkout.
"""

import contextlib
import logging
import typing

import semver

from modpack_release import (
    builder,
    change_detector,
    errors,
    git,
    mixins,
    models,
    readme,
    state,
    tag_store,
    versioning,
)

LOGGER = logging.getLogger(__name__)


class Workspace:
    """The working tree shared by every target version in a run.

    Bundles the git checkout with the collaborators that write into it.
    ``exclusive`` guards the invariant that only one target uses the
    working tree at a time.
    """

    def __init__(
        self,
        repository: git.Repository,
        builder: builder.Builder,
        persistence: state.StatePersistence,
        doc_generator: readme.DocGenerator,
        manifest: models.ContentManifest,
    ) -> None:
        self.repository = repository
        self.builder = builder
        self.persistence = persistence
        self.doc_generator = doc_generator
        self.manifest = manifest
        self._in_use = False

    @contextlib.asynccontextmanager
    async def exclusive(self) -> typing.AsyncIterator['Workspace']:
        if self._in_use:
            raise errors.WorkspaceBusy(
                f'Working tree {self.repository.working_directory} is already '
                'in use'
            )
        self._in_use = True
        try:
            yield self
        finally:
            self._in_use = False


class ReleaseReconciler(mixins.LoggerMixin):
    """Decides, builds, commits and tags releases for target versions."""

    def __init__(
        self,
        config: models.Configuration,
        workspace: Workspace,
        store: tag_store.VersionTagStore,
        detector: change_detector.ChangeDetector,
        verbose: bool = False,
    ) -> None:
        super().__init__(verbose)
        self.config = config
        self.detector = detector
        self.store = store
        self.workspace = workspace

    async def reconcile(self, target_versions: list[str]) -> models.RunResult:
        """Reconcile every target version in discovery order.

        Failures of a single target are recorded as ``error`` outcomes and
        do not stop the remaining targets. When no target was released the
        run creates no tags at all.

        Raises:
            TagParseError: If a tag created during the run can not be parsed

        """
        latest_tags: dict[str, models.ReleaseTag | None] = {}
        for target_version in target_versions:
            latest_tags[target_version] = await self.store.find_latest(
                target_version
            )
        new_targets = [
            target_version
            for target_version, tag in latest_tags.items()
            if tag is None
        ]
        seed_version = await self._seed_version(new_targets)
        self.logger.info(
            'Processing %d target versions with package version %s',
            len(target_versions),
            seed_version,
        )

        result = models.RunResult(seed_version=seed_version)
        async with self.workspace.exclusive() as workspace:
            for index, target_version in enumerate(target_versions, 1):
                self.logger.info(
                    '[%d/%d] Checking %s',
                    index,
                    len(target_versions),
                    target_version,
                )
                result.outcomes.append(
                    await self._reconcile_target(
                        workspace,
                        target_version,
                        latest_tags[target_version],
                        seed_version,
                    )
                )

            if not result.changes_occurred:
                self.logger.info('No changes detected, no tags created')
                return result

            result.package_version = self._released_version(result)
            await self._resync_unchanged(result)
        return result

    async def _seed_version(self, new_targets: list[str]) -> semver.Version:
        highest = await self.store.find_highest_global()
        if highest == versioning.ZERO:
            seed_version = versioning.parse_version(
                self.config.initial_version
            )
            if seed_version is None:
                raise errors.ConfigurationError(
                    f'Invalid initial version: {self.config.initial_version}'
                )
            self.logger.info(
                'No release tags found, starting with %s', seed_version
            )
            return seed_version
        if new_targets:
            seed_version = versioning.increment_patch(highest)
            self.logger.info(
                'Found %d new target version(s): %s; incrementing package '
                'version from %s to %s',
                len(new_targets),
                ', '.join(new_targets),
                highest,
                seed_version,
            )
            return seed_version
        self._log_verbose_info(
            'No new target versions, keeping package version %s', highest
        )
        return highest

    async def _reconcile_target(
        self,
        workspace: Workspace,
        target_version: str,
        latest_tag: models.ReleaseTag | None,
        seed_version: semver.Version,
    ) -> models.BuildOutcome:
        previous_tag = latest_tag.name if latest_tag else None
        try:
            if latest_tag is None:
                version_to_use = seed_version
                self._log_verbose_info(
                    '%s has no release tag, using %s',
                    target_version,
                    version_to_use,
                )
            else:
                version_to_use = latest_tag.package_version
                self._log_verbose_info(
                    '%s latest release is %s', target_version, latest_tag
                )

            outcome = await self._build(
                workspace, target_version, version_to_use
            )
            workspace.persistence.save(outcome)
            workspace.doc_generator.regenerate(outcome, target_version)

            if not await self.detector.needs_update(target_version, outcome):
                self.logger.info('%s has no changes', target_version)
                commit = None
                if latest_tag is not None:
                    commit = await self.store.get_commit(latest_tag)
                return models.BuildOutcome(
                    target_version=target_version,
                    status=models.ReleaseStatus.unchanged,
                    previous_tag=previous_tag,
                    new_tag=versioning.format_tag(
                        target_version, version_to_use
                    ),
                    commit=commit,
                )

            if latest_tag is None:
                next_version = version_to_use
            else:
                next_version = versioning.increment_patch(version_to_use)
                self.logger.info(
                    '%s changed, incrementing version from %s to %s',
                    target_version,
                    version_to_use,
                    next_version,
                )
            commit = await self._commit_and_push(workspace, target_version)
            new_tag = models.ReleaseTag(
                target_version=target_version, package_version=next_version
            )
            await self.store.create(
                new_tag,
                self.config.git.tag_message.format(
                    package_version=next_version,
                    target_version=target_version,
                ),
                commit,
            )
            await self.store.push(new_tag)
            self.logger.info('Created and pushed tag %s', new_tag)
            return models.BuildOutcome(
                target_version=target_version,
                status=(
                    models.ReleaseStatus.new
                    if latest_tag is None
                    else models.ReleaseStatus.changed
                ),
                previous_tag=previous_tag,
                new_tag=new_tag.name,
                commit=commit,
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.error('Error checking %s: %s', target_version, exc)
            return models.BuildOutcome(
                target_version=target_version,
                status=models.ReleaseStatus.error,
                previous_tag=previous_tag,
                error=str(exc),
            )

    async def _build(
        self,
        workspace: Workspace,
        target_version: str,
        package_version: semver.Version,
    ) -> models.InstallationOutcome:
        """Install and export both variants, returning the complete one.

        Raises:
            BuildExportFailure: If either variant fails to export

        """
        outcome = None
        for variant in (models.Variant.restricted, models.Variant.complete):
            self._log_verbose_info(
                'Building %s variant of %s', variant.name, target_version
            )
            outcome = await workspace.builder.install(
                workspace.manifest.for_variant(
                    variant, self.config.build.restricted_categories
                ),
                target_version,
            )
            if outcome.failed:
                self.logger.warning(
                    '%s: %d item(s) failed in %s variant',
                    target_version,
                    len(outcome.failed),
                    variant.name,
                )
            exported = await workspace.builder.export(
                variant, str(package_version), target_version
            )
            if not exported:
                raise errors.BuildExportFailure(target_version, variant.value)
            self._log_verbose_info(
                'Exported %s variant: %s', variant.name, exported
            )
        return outcome

    async def _commit_and_push(
        self, workspace: Workspace, target_version: str
    ) -> str:
        """Return a pushed commit to tag, committing pending changes first.

        Tags must never reference a commit that is not on the remote.
        """
        repository = workspace.repository
        if await repository.has_uncommitted_changes():
            await repository.add_all()
            commit = await repository.commit(
                self.config.git.commit_message.format(
                    target_version=target_version
                )
            )
            await repository.push()
            self._log_verbose_info('Committed and pushed %s', commit)
            return commit

        commit = await repository.head()
        if commit != await repository.remote_head():
            self.logger.info('HEAD %s is not on the remote, pushing', commit)
            await repository.push()
        return commit

    def _released_version(self, result: models.RunResult) -> semver.Version:
        """Highest package version among released targets and the seed."""
        version = result.seed_version
        for outcome in result.released:
            tag = versioning.require_tag(outcome.new_tag or '')
            if versioning.compare(tag.package_version, version) > 0:
                version = tag.package_version
        return version

    async def _resync_unchanged(self, result: models.RunResult) -> None:
        """Tag unchanged targets at the run's package version.

        The tags point at each target's existing commit and are pushed in a
        single batch once all of them are created.
        """
        unchanged = result.unchanged
        if not unchanged:
            return
        resynced: list[models.BuildOutcome] = []
        self.logger.info(
            'Creating tags for %d unchanged target(s) at %s',
            len(unchanged),
            result.package_version,
        )
        for outcome in unchanged:
            tag = models.ReleaseTag(
                target_version=outcome.target_version,
                package_version=result.package_version,
            )
            if outcome.commit is None:
                self.logger.warning(
                    'Cannot create tag for %s, no commit available',
                    outcome.target_version,
                )
                continue
            if tag.name == outcome.previous_tag:
                self._log_verbose_info('Tag %s already exists, skipping', tag)
                continue
            try:
                await self.store.create(
                    tag,
                    self.config.git.resync_tag_message.format(
                        package_version=result.package_version,
                        target_version=outcome.target_version,
                    ),
                    outcome.commit,
                )
            except errors.ModpackReleaseError as exc:
                self.logger.error(
                    'Failed to tag %s: %s', outcome.target_version, exc
                )
                self._replace_outcome(
                    result,
                    outcome.model_copy(
                        update={
                            'status': models.ReleaseStatus.error,
                            'error': str(exc),
                        }
                    ),
                )
                continue
            result.resync_tags.append(tag.name)
            resynced.append(outcome)
            self._log_verbose_info(
                'Created tag %s pointing at the commit of %s',
                tag,
                outcome.previous_tag,
            )

        if not result.resync_tags:
            return
        try:
            await self.store.push_all()
        except errors.ModpackReleaseError as exc:
            self.logger.error('Failed to push unchanged tags: %s', exc)
            for outcome in resynced:
                self._replace_outcome(
                    result,
                    outcome.model_copy(
                        update={
                            'status': models.ReleaseStatus.error,
                            'error': str(exc),
                        }
                    ),
                )
            result.resync_tags.clear()
            return
        self.logger.info('Pushed %d unchanged tag(s)', len(result.resync_tags))

    @staticmethod
    def _replace_outcome(
        result: models.RunResult, outcome: models.BuildOutcome
    ) -> None:
        for index, existing in enumerate(result.outcomes):
            if existing.target_version == outcome.target_version:
                result.outcomes[index] = outcome
                return

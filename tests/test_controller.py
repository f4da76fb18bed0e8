"""Tests for the release controller."""

import json
import pathlib
import tempfile
from unittest import mock

import semver

from modpack_release import (
    builder,
    controller,
    errors,
    models,
    reconciler,
    tag_store,
)
from tests import base


class ReleaseControllerTestCase(base.AsyncTestCase):
    """Test cases for the check-and-tag, auto-update and build phases."""

    def setUp(self) -> None:
        super().setUp()
        self.working_directory = pathlib.Path(
            self.enterContext(tempfile.TemporaryDirectory())
        )
        (self.working_directory / 'content.toml').write_text(
            '[[mods]]\nidentifier = "sodium"\n'
            '[[mods]]\nidentifier = "freecam"\ncategory = "cheating"\n',
            encoding='utf-8',
        )
        self.config = models.Configuration.model_validate(
            {
                'build': {'working_directory': str(self.working_directory)},
                'discovery': {'target_versions': ['1.20.1', '1.21']},
            }
        )
        self.controller = controller.ReleaseController(self.config)
        self.gate = self.enterContext(
            mock.patch(
                'modpack_release.sync_gate.check_upstream_available',
                new_callable=mock.AsyncMock,
            )
        )
        self.reconciler = mock.MagicMock(spec=reconciler.ReleaseReconciler)
        self.enterContext(
            mock.patch.object(
                self.controller, '_reconciler', return_value=self.reconciler
            )
        )

    def _result(self, *outcomes: models.BuildOutcome) -> models.RunResult:
        return models.RunResult(
            seed_version=semver.Version(0, 1, 1),
            package_version=semver.Version(0, 1, 1),
            outcomes=list(outcomes),
        )

    async def test_upstream_unavailable_aborts_run(self) -> None:
        self.gate.side_effect = errors.UpstreamUnavailable(
            'https://example.com', 'status 503'
        )
        with self.assertRaises(errors.UpstreamUnavailable):
            await self.controller.check_and_tag()
        self.reconciler.reconcile.assert_not_awaited()

    async def test_check_and_tag_writes_release_manifest(self) -> None:
        self.reconciler.reconcile.return_value = self._result(
            models.BuildOutcome(
                target_version='1.20.1',
                status=models.ReleaseStatus.unchanged,
                previous_tag='1.20.1_0.1.0',
                commit='abc',
            ),
            models.BuildOutcome(
                target_version='1.21',
                status=models.ReleaseStatus.new,
                new_tag='1.21_0.1.1',
                commit='def',
            ),
        )
        path = self.working_directory / 'out' / 'releases.json'

        self.assertTrue(await self.controller.check_and_tag(path))

        self.reconciler.reconcile.assert_awaited_once_with(['1.20.1', '1.21'])
        manifest = json.loads(path.read_text())
        self.assertEqual(manifest['package_version'], '0.1.1')
        self.assertEqual(
            manifest['releases'],
            [
                {
                    'target_version': '1.21',
                    'status': 'new',
                    'tag': '1.21_0.1.1',
                    'commit': 'def',
                }
            ],
        )

    async def test_errors_raise_after_reporting(self) -> None:
        failure = models.BuildOutcome(
            target_version='1.21',
            status=models.ReleaseStatus.error,
            error='Failed to export full variant for 1.21',
        )
        self.reconciler.reconcile.return_value = self._result(failure)
        path = self.working_directory / 'releases.json'

        with self.assertRaises(errors.ReleaseRunFailed) as ctx:
            await self.controller.check_and_tag(path)
        self.assertEqual(ctx.exception.errors, [failure])
        self.assertEqual(json.loads(path.read_text())['releases'], [])

    async def test_auto_update_without_changes(self) -> None:
        self.reconciler.reconcile.return_value = models.RunResult(
            seed_version=semver.Version(0, 1, 0)
        )
        path = self.working_directory / 'releases.json'
        self.assertFalse(await self.controller.auto_update(path))
        self.assertIsNone(json.loads(path.read_text())['package_version'])

    async def test_build_uses_latest_tag_version(self) -> None:
        self.controller.store = tag_store.VersionTagStore(
            base.FakeRepository(tags={'1.20.1_0.1.4': 'abc'})
        )
        self.controller.builder = mock.MagicMock(spec=builder.Builder)
        self.controller.builder.install.return_value = (
            models.InstallationOutcome()
        )
        self.controller.builder.export.return_value = 'pack.mrpack'

        exported = await self.controller.build(
            '1.20.1', models.Variant.restricted
        )

        self.assertEqual(exported, 'pack.mrpack')
        manifest = self.controller.builder.install.await_args.args[0]
        self.assertEqual([mod.identifier for mod in manifest.mods], ['sodium'])
        self.controller.builder.export.assert_awaited_once_with(
            models.Variant.restricted, '0.1.4', '1.20.1'
        )

    async def test_build_without_tags_uses_initial_version(self) -> None:
        self.controller.store = tag_store.VersionTagStore(
            base.FakeRepository()
        )
        self.controller.builder = mock.MagicMock(spec=builder.Builder)
        self.controller.builder.install.return_value = (
            models.InstallationOutcome()
        )
        self.controller.builder.export.return_value = None

        with self.assertRaises(errors.BuildExportFailure):
            await self.controller.build('1.21', models.Variant.complete)
        self.controller.builder.export.assert_awaited_once_with(
            models.Variant.complete, '0.1.0', '1.21'
        )

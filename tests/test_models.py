"""Tests for configuration, content and release models."""

import os
import pathlib
import tempfile
import unittest
from unittest import mock

import semver

from modpack_release import errors, models


class ConfigurationTestCase(unittest.TestCase):
    """Test cases for Configuration loading."""

    def setUp(self) -> None:
        self.temp_dir = pathlib.Path(
            self.enterContext(tempfile.TemporaryDirectory())
        )
        self.enterContext(mock.patch.dict(os.environ, clear=True))

    def test_missing_file_uses_defaults(self) -> None:
        config = models.Configuration.load(self.temp_dir / 'missing.toml')
        self.assertEqual(config.initial_version, '0.1.0')
        self.assertEqual(config.git.remote, 'origin')
        self.assertEqual(config.packwiz.max_retries, 12)
        self.assertEqual(config.build.restricted_categories, {'cheating'})
        self.assertIsNone(config.target_version)

    def test_load_toml(self) -> None:
        path = self.temp_dir / 'config.toml'
        path.write_text(
            'initial_version = "1.0.0"\n'
            '[git]\n'
            'branch = "release"\n'
            '[discovery]\n'
            'target_versions = ["1.20.1", "1.21"]\n',
            encoding='utf-8',
        )
        config = models.Configuration.load(path)
        self.assertEqual(config.initial_version, '1.0.0')
        self.assertEqual(config.git.branch, 'release')
        self.assertEqual(config.discovery.target_versions, ['1.20.1', '1.21'])

    def test_environment_defaults(self) -> None:
        os.environ['MC_VERSION'] = '1.20.4'
        os.environ['MODRINTH_API_URL'] = 'https://modrinth.example.com'
        config = models.Configuration.load(None)
        self.assertEqual(config.target_version, '1.20.4')
        self.assertEqual(
            config.discovery.api_url, 'https://modrinth.example.com'
        )

    def test_explicit_values_override_environment(self) -> None:
        os.environ['MC_VERSION'] = '1.20.4'
        config = models.Configuration.model_validate(
            {'target_version': '1.19.2'}
        )
        self.assertEqual(config.target_version, '1.19.2')

    def test_invalid_toml(self) -> None:
        path = self.temp_dir / 'config.toml'
        path.write_text('initial_version = \n', encoding='utf-8')
        with self.assertRaises(errors.ConfigurationError):
            models.Configuration.load(path)

    def test_invalid_values(self) -> None:
        path = self.temp_dir / 'config.toml'
        path.write_text('[packwiz]\nmax_retries = -1\n', encoding='utf-8')
        with self.assertRaises(errors.ConfigurationError):
            models.Configuration.load(path)


class ContentManifestTestCase(unittest.TestCase):
    """Test cases for the content manifest."""

    def setUp(self) -> None:
        self.manifest = models.ContentManifest.model_validate(
            {
                'mods': [
                    {'identifier': 'sodium'},
                    {
                        'identifier': 'freecam',
                        'category': 'cheating',
                        'alternatives': [{'identifier': 'freecam-fork'}],
                    },
                    {'identifier': 'jei', 'method': 'curseforge'},
                ],
                'resource_packs': [{'identifier': 'fresh-animations'}],
            }
        )

    def test_restricted_variant_omits_restricted_categories(self) -> None:
        manifest = self.manifest.for_variant(
            models.Variant.restricted, {'cheating'}
        )
        self.assertEqual(
            [mod.identifier for mod in manifest.mods], ['sodium', 'jei']
        )
        self.assertEqual(manifest.resource_packs, self.manifest.resource_packs)

    def test_complete_variant_includes_everything(self) -> None:
        manifest = self.manifest.for_variant(
            models.Variant.complete, {'cheating'}
        )
        self.assertEqual(len(manifest.mods), 3)
        self.assertEqual(
            manifest.mods[2].method, models.InstallMethod.curseforge
        )

    def test_duplicate_identifiers_rejected(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            models.ContentManifest.model_validate(
                {'mods': [{'identifier': 'sodium'}, {'identifier': 'sodium'}]}
            )
        self.assertIn('sodium', str(ctx.exception))

    def test_load(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = pathlib.Path(temp_dir) / 'content.toml'
            path.write_text(
                '[[mods]]\nidentifier = "sodium"\n'
                '[[mods]]\nidentifier = "sodium"\n',
                encoding='utf-8',
            )
            with self.assertRaises(errors.ConfigurationError):
                models.ContentManifest.load(path)
            with self.assertRaises(errors.ConfigurationError):
                models.ContentManifest.load(pathlib.Path(temp_dir) / 'x')


class ReleaseModelsTestCase(unittest.TestCase):
    """Test cases for release tags and run results."""

    def test_release_tag_name(self) -> None:
        tag = models.ReleaseTag(
            target_version='1.20.1', package_version='0.1.7'
        )
        self.assertEqual(tag.package_version, semver.Version(0, 1, 7))
        self.assertEqual(tag.name, '1.20.1_0.1.7')
        self.assertEqual(str(tag), '1.20.1_0.1.7')

    def test_run_result_partitions_outcomes(self) -> None:
        result = models.RunResult(
            seed_version=semver.Version(0, 1, 7),
            package_version=semver.Version(0, 1, 7),
            outcomes=[
                models.BuildOutcome(
                    target_version='1.19.2',
                    status=models.ReleaseStatus.unchanged,
                    previous_tag='1.19.2_0.1.6',
                    commit='abc',
                ),
                models.BuildOutcome(
                    target_version='1.20.1',
                    status=models.ReleaseStatus.changed,
                    previous_tag='1.20.1_0.1.6',
                    new_tag='1.20.1_0.1.7',
                    commit='def',
                ),
                models.BuildOutcome(
                    target_version='1.21',
                    status=models.ReleaseStatus.error,
                    error='boom',
                ),
            ],
        )
        self.assertTrue(result.changes_occurred)
        self.assertEqual(len(result.unchanged), 1)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(
            result.release_manifest(),
            [
                {
                    'target_version': '1.20.1',
                    'status': 'changed',
                    'tag': '1.20.1_0.1.7',
                    'commit': 'def',
                }
            ],
        )

    def test_fingerprint_ignores_order(self) -> None:
        a = models.ContentDefinition(identifier='a')
        b = models.ContentDefinition(identifier='b')
        self.assertEqual(
            models.InstallationOutcome(
                succeeded=[a, b], content={'mods/a': '1', 'mods/b': '2'}
            ).fingerprint(),
            models.InstallationOutcome(
                succeeded=[b, a], content={'mods/b': '2', 'mods/a': '1'}
            ).fingerprint(),
        )

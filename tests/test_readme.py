"""Tests for README rendering."""

import pathlib
import tempfile
import unittest

import jinja2

from modpack_release import models, readme


class RenderTestCase(unittest.TestCase):
    """Tests for the render function."""

    def test_render_template_string(self) -> None:
        self.assertEqual(
            readme.render(template='{{ name }}!', name='sodium'), 'sodium!'
        )

    def test_render_requires_source_or_template(self) -> None:
        with self.assertRaises(ValueError):
            readme.render()

    def test_render_rejects_source_and_template(self) -> None:
        with self.assertRaises(ValueError):
            readme.render(pathlib.Path('README.md.j2'), '{{ name }}')

    def test_render_undefined_variable(self) -> None:
        with self.assertRaises(jinja2.UndefinedError):
            readme.render(template='{{ missing }}')


class DocGeneratorTestCase(unittest.TestCase):
    """Tests for README regeneration in the working tree."""

    def setUp(self) -> None:
        self.working_directory = pathlib.Path(
            self.enterContext(tempfile.TemporaryDirectory())
        )
        self.outcome = models.InstallationOutcome(
            succeeded=[
                models.ContentDefinition(identifier='sodium'),
                models.ContentDefinition(
                    identifier='freecam', category='cheating'
                ),
            ],
            failed=[
                models.ContentDefinition(identifier='optifine'),
                models.ContentDefinition(identifier='phosphor'),
            ],
            alternatives_used=[
                models.ContentDefinition(
                    identifier='optifine',
                    alternatives=[models.ContentReference(identifier='iris')],
                )
            ],
        )

    def test_regenerate_default_template(self) -> None:
        generator = readme.DocGenerator(
            models.BuildConfiguration(), self.working_directory
        )
        self.assertTrue(generator.regenerate(self.outcome, '1.20.1'))
        content = (self.working_directory / 'README.md').read_text()
        self.assertIn('# Sodium Vanilla', content)
        self.assertIn('Minecraft 1.20.1', content)
        self.assertIn('- [freecam](https://modrinth.com/mod/freecam)', content)
        self.assertIn('(cheating)', content)
        self.assertIn('optifine is replaced by iris', content)
        unavailable = content.split('## Unavailable', 1)[1]
        self.assertIn('phosphor', unavailable)
        self.assertNotIn('optifine', unavailable)

    def test_regenerate_custom_template(self) -> None:
        (self.working_directory / 'custom.j2').write_text(
            '{{ pack_name }} {{ outcome.succeeded | length }}'
        )
        generator = readme.DocGenerator(
            models.BuildConfiguration(
                readme_template=pathlib.Path('custom.j2'),
                readme_output=pathlib.Path('docs.md'),
            ),
            self.working_directory,
        )
        self.assertTrue(generator.regenerate(self.outcome, '1.21'))
        self.assertEqual(
            (self.working_directory / 'docs.md').read_text(),
            'Sodium Vanilla 2',
        )

    def test_regenerate_failure_is_reported(self) -> None:
        (self.working_directory / 'broken.j2').write_text('{{ missing }}')
        generator = readme.DocGenerator(
            models.BuildConfiguration(
                readme_template=pathlib.Path('broken.j2')
            ),
            self.working_directory,
        )
        with self.assertLogs('modpack_release.readme', 'WARNING'):
            self.assertFalse(generator.regenerate(self.outcome, '1.21'))
        self.assertFalse((self.working_directory / 'README.md').exists())

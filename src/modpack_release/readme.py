"""Jinja2 rendering of the modpack README from the installation outcome.

README generation is best-effort: rendering or write failures are logged
and never affect the outcome of the target version being built.
"""

import logging
import pathlib
import typing

import jinja2

from modpack_release import models

LOGGER = logging.getLogger(__name__)
BASE_PATH = pathlib.Path(__file__).parent
DEFAULT_TEMPLATE = BASE_PATH / 'templates' / 'README.md.j2'


def render(
    source: pathlib.Path | None = None,
    template: str | None = None,
    **kwargs: typing.Any,
) -> str:
    """Render a Jinja2 template from a file or a template string.

    Raises:
        ValueError: If neither or both of source and template are given

    """
    if not source and not template:
        raise ValueError('source or template is required')
    if source and template:
        raise ValueError('You can not specify both source and template')
    env = jinja2.Environment(
        autoescape=False,  # noqa: S701
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    if source:
        template = source.read_text(encoding='utf-8')
    return env.from_string(template).render(**kwargs)


class DocGenerator:
    """Regenerates the README in the working tree."""

    def __init__(
        self,
        config: models.BuildConfiguration,
        working_directory: pathlib.Path,
    ) -> None:
        self.config = config
        self.working_directory = working_directory

    @property
    def template(self) -> pathlib.Path:
        if self.config.readme_template:
            return self.working_directory / self.config.readme_template
        return DEFAULT_TEMPLATE

    def regenerate(
        self, outcome: models.InstallationOutcome, target_version: str
    ) -> bool:
        """Render the README, returning False if it could not be written."""
        destination = self.working_directory / self.config.readme_output
        try:
            content = render(
                self.template,
                pack_name=self.config.pack_name,
                target_version=target_version,
                outcome=outcome,
            )
            destination.write_text(content, encoding='utf-8')
        except (jinja2.TemplateError, OSError) as exc:
            LOGGER.warning('Failed to regenerate %s: %s', destination, exc)
            return False
        LOGGER.debug('Regenerated %s', destination)
        return True

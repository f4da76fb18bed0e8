"""Packwiz command execution with rate-limit backoff.

Packwiz writes errors to stdout, so both streams are combined into a single
output string. Failures whose output indicates rate limiting are retried
with exponential backoff; any other failure is returned immediately.
"""

import asyncio
import logging
import pathlib

import pydantic
import tenacity

from modpack_release import models

LOGGER = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ('rate limit', 'ratelimit', 'too many requests', '429')


class PackwizResult(pydantic.BaseModel):
    """Result of a packwiz invocation."""

    returncode: int | None
    output: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def is_rate_limited(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


def _should_retry(result: PackwizResult) -> bool:
    return (
        not result.success
        and result.returncode is not None
        and is_rate_limited(result.output)
    )


def _last_result(retry_state: tenacity.RetryCallState) -> PackwizResult:
    return retry_state.outcome.result()


class Packwiz:
    """Runs packwiz commands in the modpack working tree."""

    def __init__(
        self,
        config: models.PackwizConfiguration,
        working_directory: pathlib.Path,
    ) -> None:
        self.config = config
        self.working_directory = working_directory

    async def _execute_once(self, args: list[str]) -> PackwizResult:
        try:
            process = await asyncio.create_subprocess_exec(
                self.config.executable,
                *args,
                cwd=self.working_directory,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return PackwizResult(returncode=None, output=str(exc))
        stdout, stderr = await process.communicate()
        output = '\n'.join(
            stream.decode('utf-8', errors='replace').strip()
            for stream in (stdout, stderr)
            if stream.strip()
        )
        return PackwizResult(returncode=process.returncode, output=output)

    async def execute(self, *args: str) -> PackwizResult:
        """Run packwiz, retrying while the output reports rate limiting."""
        LOGGER.debug('Running packwiz %s', ' '.join(args))
        retrying = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.config.max_retries + 1),
            wait=tenacity.wait_exponential(
                multiplier=self.config.initial_delay
            ),
            retry=tenacity.retry_if_result(_should_retry),
            before_sleep=tenacity.before_sleep_log(LOGGER, logging.WARNING),
            retry_error_callback=_last_result,
            sleep=asyncio.sleep,
        )
        return await retrying(self._execute_once, list(args))

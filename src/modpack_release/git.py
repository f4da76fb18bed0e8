"""Git operations on the modpack working tree.

All commands run as asynchronous subprocesses against a single checkout.
The ``Repository`` instance is the one working tree shared by every target
version in a run; commands against it must never run concurrently.
"""

import asyncio
import logging
import pathlib

from modpack_release import errors

LOGGER = logging.getLogger(__name__)


async def _run_git_command(
    command: list[str], working_directory: pathlib.Path
) -> tuple[int, str, str]:
    """Run a git command, returning the exit code, stdout and stderr."""
    LOGGER.debug('Running git %s in %s', ' '.join(command), working_directory)
    process = await asyncio.create_subprocess_exec(
        'git',
        *command,
        cwd=working_directory,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return (
        process.returncode,
        stdout.decode('utf-8', errors='replace'),
        stderr.decode('utf-8', errors='replace'),
    )


class Repository:
    """A git checkout with the primitives needed for tagging releases."""

    def __init__(
        self,
        working_directory: pathlib.Path,
        remote: str = 'origin',
        branch: str = 'main',
        commit_author: str | None = None,
    ) -> None:
        self.working_directory = working_directory
        self.remote = remote
        self.branch = branch
        self.commit_author = commit_author

    async def run(self, *command: str) -> str:
        """Run a git command and return its stripped stdout.

        Raises:
            GitCommandError: If git exits with a non-zero status

        """
        returncode, stdout, stderr = await _run_git_command(
            list(command), self.working_directory
        )
        if returncode != 0:
            raise errors.GitCommandError(
                list(command), returncode, stdout, stderr
            )
        return stdout.strip()

    async def has_uncommitted_changes(self) -> bool:
        return bool(await self.run('status', '--porcelain'))

    async def add_all(self) -> None:
        await self.run('add', '-A')

    async def commit(self, message: str) -> str:
        """Commit the staged changes and return the new HEAD commit."""
        command = ['commit', '-m', message]
        if self.commit_author:
            command.extend(['--author', self.commit_author])
        await self.run(*command)
        return await self.head()

    async def push(self) -> None:
        await self.run('push', self.remote, f'HEAD:{self.branch}')

    async def push_tag(self, name: str) -> None:
        await self.run('push', self.remote, f'refs/tags/{name}')

    async def push_tags(self) -> None:
        await self.run('push', self.remote, '--tags')

    async def rev_parse(self, ref: str) -> str:
        return await self.run('rev-parse', '--verify', f'{ref}^{{commit}}')

    async def head(self) -> str:
        return await self.rev_parse('HEAD')

    async def remote_head(self) -> str:
        return await self.rev_parse(f'{self.remote}/{self.branch}')

    async def list_tags(self, pattern: str | None = None) -> list[str]:
        command = ['tag', '--list']
        if pattern:
            command.append(pattern)
        output = await self.run(*command)
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def tag_exists(self, name: str) -> bool:
        returncode, _stdout, _stderr = await _run_git_command(
            ['rev-parse', '--verify', '--quiet', f'refs/tags/{name}'],
            self.working_directory,
        )
        return returncode == 0

    async def create_annotated_tag(
        self, name: str, message: str, commit: str
    ) -> None:
        await self.run('tag', '-a', name, '-m', message, commit)

    async def show_file(self, ref: str, path: pathlib.Path) -> str | None:
        """Return a file's content at a ref, or None if it is not there."""
        returncode, stdout, stderr = await _run_git_command(
            ['show', f'{ref}:{path.as_posix()}'], self.working_directory
        )
        if returncode != 0:
            LOGGER.debug(
                'Unable to read %s at %s: %s', path, ref, stderr.strip()
            )
            return None
        return stdout

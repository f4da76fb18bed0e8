"""Command line interface for modpack release automation."""

import argparse
import asyncio
import logging
import pathlib
import sys

from modpack_release import controller, errors, models, version

LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure logging, quieting the HTTP client unless debugging."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
    )
    for logger_name in ('httpcore', 'httpx'):
        logging.getLogger(logger_name).setLevel(
            logging.DEBUG if debug else logging.WARNING
        )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='modpack-release',
        description='Build, tag and release a modpack for every supported '
        'Minecraft version',
    )
    parser.add_argument(
        '--config',
        type=pathlib.Path,
        default=pathlib.Path('modpack-release.toml'),
        help='Configuration file (default: %(default)s)',
    )
    parser.add_argument(
        '--debug', action='store_true', help='Enable debug logging'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true', help='Verbose output'
    )
    parser.add_argument(
        '--version', action='version', version=version.__version__
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    check = subparsers.add_parser(
        'check-and-tag',
        help='Check every target version for changes and create tags',
    )
    check.add_argument(
        '--release-manifest',
        type=pathlib.Path,
        help='Write the released targets to this JSON file',
    )

    auto = subparsers.add_parser(
        'auto-update',
        help='Check and tag, then hand released targets to publishing',
    )
    auto.add_argument(
        '--release-manifest',
        type=pathlib.Path,
        default=pathlib.Path('releases.json'),
        help='Release manifest for the publish stage (default: %(default)s)',
    )

    build = subparsers.add_parser(
        'build', help='Build one variant for a single target version'
    )
    build.add_argument(
        '--target-version',
        help='Minecraft version to build (default: $MC_VERSION)',
    )
    variant = build.add_mutually_exclusive_group()
    variant.add_argument(
        '--safe',
        dest='variant',
        action='store_const',
        const=models.Variant.restricted,
        help='Build the safe variant',
    )
    variant.add_argument(
        '--full',
        dest='variant',
        action='store_const',
        const=models.Variant.complete,
        help='Build the full variant (default)',
    )
    build.set_defaults(variant=models.Variant.complete)
    return parser.parse_args(args)


async def run(args: argparse.Namespace) -> None:
    config = models.Configuration.load(args.config)
    release_controller = controller.ReleaseController(config, args.verbose)
    match args.command:
        case 'check-and-tag':
            await release_controller.check_and_tag(args.release_manifest)
        case 'auto-update':
            await release_controller.auto_update(args.release_manifest)
        case 'build':
            target_version = args.target_version or config.target_version
            if not target_version:
                raise errors.ConfigurationError(
                    'No target version given, set MC_VERSION or pass '
                    '--target-version'
                )
            await release_controller.build(target_version, args.variant)
        case _:
            raise RuntimeError(f'Unsupported command: {args.command}')


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.debug)
    try:
        asyncio.run(run(args))
    except errors.ReleaseRunFailed as exc:
        for outcome in exc.errors:
            LOGGER.error('%s: %s', outcome.target_version, outcome.error)
        LOGGER.error('%s', exc)
        return 1
    except errors.ModpackReleaseError as exc:
        LOGGER.error('%s', exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info('Interrupted, exiting')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

"""CLI entry point: ephemeris-cache bodies|info|state|bounds subcommands."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import NoReturn

from ephemeris_cache.bodies import body_label, known_bodies
from ephemeris_cache.config import get_default_frame, get_log_level
from ephemeris_cache.errors import EphemerisCacheError
from ephemeris_cache.manager import EphemerisCacheManager
from ephemeris_cache.spice.reader import CspyceKernelReader
from ephemeris_cache.time_utils import format_epoch, parse_epoch

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    """Configure logging for CLI (stderr, level from --verbose or EPHEMERIS_CACHE_LOG)."""
    level = logging.DEBUG if verbose else logging.WARNING
    env_level = get_log_level()
    if env_level is not None:
        level = getattr(logging, env_level)
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(name)s: %(message)s',
        stream=sys.stderr,
    )


def _body_arg(value: str) -> str | int:
    """Body given as NAIF ID or name; names are resolved by the manager."""
    try:
        return int(value)
    except ValueError:
        return value


def _load_or_fail(
    manager: EphemerisCacheManager, args: argparse.Namespace
) -> bool:
    """Load args.kernel for args.target/args.observer; report unsupported pairs."""
    if manager.load_source(args.kernel, args.target, args.observer, args.frame):
        return True
    print(
        f'Error: {args.kernel} does not provide {args.target} relative to '
        f'{args.observer} in {args.frame or get_default_frame()}',
        file=sys.stderr,
    )
    return False


def _bodies_cmd(args: argparse.Namespace) -> int:
    """Print the body-name registry (bodies subcommand)."""
    del args
    for body_id, name in known_bodies():
        print(f'{body_id:>6d}  {name}')
    return 0


def _info_cmd(args: argparse.Namespace) -> int:
    """Print the bodies in an SPK file and their coverage (info subcommand).

    Parameters:
        args: Parsed args; kernel path.

    Returns:
        Exit code 0 on success, 1 on error.
    """
    reader = CspyceKernelReader()
    handle = reader.open(args.kernel)
    try:
        for body_id in sorted(handle.body_ids):
            for start, stop in reader.coverage_window(handle, body_id):
                print(
                    f'{body_id:>8d}  {body_label(body_id):<20s}  '
                    f'{format_epoch(start)}  {format_epoch(stop)}'
                )
    finally:
        reader.close(handle)
    return 0


def _state_cmd(args: argparse.Namespace) -> int:
    """Load a kernel and print one state vector (state subcommand).

    Parameters:
        args: Parsed args; kernel, target, observer, frame, time.

    Returns:
        Exit code 0 on success, 1 on error.
    """
    try:
        epoch = parse_epoch(args.time)
    except ValueError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    with EphemerisCacheManager() as manager:
        if not _load_or_fail(manager, args):
            return 1
        state = manager.get_state(args.target, args.observer, args.frame, epoch)
    print(f'epoch_tdb {epoch:.6f}')
    for label, value in zip(('x', 'y', 'z', 'vx', 'vy', 'vz'), state):
        print(f'{label:<9s} {value:.9e}')
    return 0


def _bounds_cmd(args: argparse.Namespace) -> int:
    """Load a kernel and print its validity interval for the key (bounds subcommand)."""
    with EphemerisCacheManager() as manager:
        if not _load_or_fail(manager, args):
            return 1
        start, stop = manager.get_time_bounds(args.target, args.observer, args.frame)
    print(f'start {start:.6f}  {format_epoch(start)}')
    print(f'stop  {stop:.6f}  {format_epoch(stop)}')
    return 0


def _add_key_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('kernel', type=str, help='SPK kernel file')
    parser.add_argument('target', type=_body_arg, help='Target body name or NAIF ID')
    parser.add_argument('observer', type=_body_arg, help='Observer body name or NAIF ID')
    parser.add_argument(
        '--frame',
        type=str,
        default=None,
        help='Reference frame (default J2000); env: EPHEMERIS_CACHE_FRAME',
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point for ephemeris-cache CLI (bodies | info | state | bounds).

    Returns:
        Exit code 0 on success, 1 on failure.
    """
    parser = argparse.ArgumentParser(
        prog='ephemeris-cache',
        description='Load SPK kernels and query body states.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Show DEBUG logs')
    subparsers = parser.add_subparsers(dest='command', required=True)

    bodies_parser = subparsers.add_parser('bodies', help='List known body names and NAIF IDs')
    bodies_parser.set_defaults(func=_bodies_cmd)

    info_parser = subparsers.add_parser('info', help='List bodies and coverage of an SPK file')
    info_parser.add_argument('kernel', type=str, help='SPK kernel file')
    info_parser.set_defaults(func=_info_cmd)

    state_parser = subparsers.add_parser('state', help='State of target relative to observer')
    _add_key_arguments(state_parser)
    state_parser.add_argument(
        '--time',
        type=str,
        required=True,
        help='TDB seconds past J2000, or a UTC date/time string',
    )
    state_parser.set_defaults(func=_state_cmd)

    bounds_parser = subparsers.add_parser('bounds', help='Validity interval for a key')
    _add_key_arguments(bounds_parser)
    bounds_parser.set_defaults(func=_bounds_cmd)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return int(args.func(args))
    except EphemerisCacheError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1


def cli_main() -> NoReturn:
    """Entry point for console_scripts; calls main() and exits with its return code."""
    sys.exit(main())


if __name__ == '__main__':
    sys.exit(main())

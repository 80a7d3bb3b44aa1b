"""Command line parsing into a GrimConfig."""

import argparse
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from grim.errors import ConfigurationError
from grim.models import KillFlags, MatchCriteria

DEFAULT_INTERVAL = 2

DESCRIPTION = "grim - interactive and scripted process terminator"

EPILOG = """\
targets:
  PID                   kill a specific process by PID
  NAME                  match process name or command line

examples:
  grim firefox                          ask before killing every firefox
  grim --force --exact node             kill processes named exactly 'node'
  grim --watch --max 3 --force 4242     keep killing until three kills
  grim --interactive                    full-screen process browser
"""


@dataclass(slots=True, frozen=True)
class GrimConfig:
    """Everything a grim run needs to know."""

    targets: tuple[str, ...] = ()
    force: bool = False
    interactive: bool = False
    kill_children: bool = False
    exact: bool = False
    watch: bool = False
    interval: int = DEFAULT_INTERVAL
    max_kills: int | None = None
    timeout: int | None = None
    verbose: bool = False

    @property
    def flags(self) -> KillFlags:
        """Kill policy flags for this run."""
        return KillFlags(force=self.force, kill_children=self.kill_children)

    @property
    def criteria(self) -> MatchCriteria:
        """Pattern matching criteria for this run."""
        return MatchCriteria(exact=self.exact)

    def validate(self) -> None:
        """Raise ConfigurationError if a scripted run has nothing to match."""
        if not self.interactive and not self.targets:
            raise ConfigurationError("Missing targets for grim (PIDs or process names)")


def lenient_int(fallback: int) -> Callable[[str], int]:
    """
    argparse type that never aborts: bad or negative numbers become ``fallback``.
    """

    def convert(value: str) -> int:
        """Parse ``value``, returning ``fallback`` when it is not a non-negative int."""
        try:
            number = int(value.strip())
        except ValueError:
            return fallback
        return number if number >= 0 else fallback

    return convert


def build_parser() -> argparse.ArgumentParser:
    """Build the grim argument parser."""
    parser = argparse.ArgumentParser(
        prog="grim",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--interactive", action="store_true", help="launch full-screen interactive TUI"
    )
    parser.add_argument("--force", action="store_true", help="kill without confirmation")
    parser.add_argument(
        "--kill-children", action="store_true", help="also terminate child processes"
    )
    parser.add_argument("--exact", action="store_true", help="match process name exactly")
    parser.add_argument(
        "--watch",
        action="store_true",
        help="continuously monitor and kill matching processes",
    )
    parser.add_argument(
        "--interval",
        type=lenient_int(DEFAULT_INTERVAL),
        default=DEFAULT_INTERVAL,
        metavar="SECONDS",
        help=f"watch mode refresh interval (default: {DEFAULT_INTERVAL})",
    )
    parser.add_argument(
        "--max",
        dest="max_kills",
        type=lenient_int(0),
        metavar="COUNT",
        help="stop after killing COUNT processes",
    )
    parser.add_argument(
        "--timeout", type=lenient_int(0), metavar="SECONDS", help="stop after a time limit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("targets", nargs="*", metavar="TARGET", help="PID or name pattern")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> GrimConfig:
    """Parse ``argv`` (sys.argv[1:] when None) into a GrimConfig."""
    options = build_parser().parse_intermixed_args(argv)

    # A zero interval would spin the watch loop
    interval = options.interval if options.interval > 0 else DEFAULT_INTERVAL

    return GrimConfig(
        targets=tuple(options.targets),
        force=options.force,
        interactive=options.interactive,
        kill_children=options.kill_children,
        exact=options.exact,
        watch=options.watch,
        interval=interval,
        max_kills=options.max_kills,
        timeout=options.timeout,
        verbose=options.verbose,
    )

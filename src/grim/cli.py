"""Command-line entry point for grim."""

import logging
import sys
from collections.abc import Sequence

from textual.logging import TextualHandler

from grim.app import GrimApp
from grim.config import GrimConfig, parse_args
from grim.errors import GrimError, SessionSetupError
from grim.provider import ProcessProvider, PsutilProvider
from grim.runner import ScriptedRunner

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to the Textual console while an app runs, stderr otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[TextualHandler()],
    )


def run_interactive(config: GrimConfig, provider: ProcessProvider) -> int:
    """Run the full-screen browser and return the number of processes killed."""
    app = GrimApp(provider, kill_children=config.kill_children, force=config.force)
    try:
        killed = app.run()
    except Exception as exc:
        raise SessionSetupError(f"Could not start interactive session: {exc}") from exc
    return killed or 0


def run(argv: Sequence[str] | None = None, provider: ProcessProvider | None = None) -> int:
    """Run grim with ``argv`` and return the process exit status."""
    config = parse_args(argv)
    configure_logging(config.verbose)
    provider = provider or PsutilProvider()

    try:
        config.validate()
        if config.interactive:
            killed = run_interactive(config, provider)
            print(f"🎯 Done. Total processes killed: {killed}")
        else:
            ScriptedRunner(config, provider).run()
    except GrimError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"grim: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\ngrim: interrupted", file=sys.stderr)
        return 130

    return 0


def main() -> None:
    """Entry point for the grim command."""
    sys.exit(run())


if __name__ == "__main__":
    main()

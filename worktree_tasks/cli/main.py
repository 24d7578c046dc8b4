"""Entry point for the gw command."""

import os
import sys
from typing import List, Optional

from rich.console import Console

from worktree_tasks.app import WorktreeApp
from worktree_tasks.cli.args import parse_args
from worktree_tasks.config import Config
from worktree_tasks.logging_config import get_logger, setup_logging
from worktree_tasks.services import ClickupService, GitService, StoreFiles
from worktree_tasks.utils.scheduling import Scheduler

console = Console(stderr=True)
logger = get_logger(__name__)


def build_config(parsed_args) -> Config:
    overrides = {
        "frame_rate": parsed_args.fps,
        "main_branch": parsed_args.main_branch,
        "verbose": parsed_args.verbose,
        "debug": parsed_args.debug,
    }
    if parsed_args.store_dir:
        overrides["store_dir"] = os.path.expanduser(parsed_args.store_dir)
    return Config.from_dict(overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    try:
        config = build_config(parsed_args)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 2

    # The app owns the screen, so logs only go to the file in the store dir
    setup_logging(verbose=config.verbose, debug=config.debug, tui_mode=True, log_dir=config.store_dir)

    if config.debug:
        logger.debug("Configuration:")
        for key, value in config.to_dict().items():
            logger.debug(f"  {key}: {value}")

    try:
        files = StoreFiles.open(config.store_dir)
        provider = ClickupService(config, on_invalid_payload=files.error.append)
        app = WorktreeApp(
            config,
            git_service=GitService(os.getcwd()),
            provider=provider,
            files=files,
            scheduler=Scheduler(),
        )
        return app.run()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        if config.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command-line argument parsing for worktree-tasks."""

import argparse
from typing import List, Optional

from worktree_tasks.__version__ import __version__


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="gw",
        description="Browse the git worktrees of the current repository and their ClickUp tasks",
        epilog="Setup: requires a ClickUp token, entered in the app or taken from CLICKUP_TOKEN. "
        "Wrap the command in a shell function that cd's into the path left in /tmp/gw-last-dir.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log informational messages")
    parser.add_argument("--version", action="version", version=f"worktree-tasks {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Log debug information for troubleshooting"
    )
    parser.add_argument(
        "--fps", type=int, default=60, metavar="N", help="Frames rendered per second (default: 60)"
    )
    parser.add_argument(
        "--store-dir",
        metavar="DIR",
        help="Directory holding the token, caches and logs (default: ~/.local/share/gw-app)",
    )
    parser.add_argument("--main-branch", default="master", help="Branch listed first (default: master)")

    return parser.parse_args(argv)

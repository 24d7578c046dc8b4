import sys

from worktree_tasks.cli.main import main

sys.exit(main())

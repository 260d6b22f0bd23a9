"""Account Maps — Entry Point."""
import sys

from accountmaps.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""
Game Tracker - Command-line Entry Point
Adds local game directories to the library and keeps watched threads in sync
"""

import sys

from game_tracker.cli import main


if __name__ == "__main__":
    sys.exit(main())

"""
mathcore — Entry point.

Run the command line interface (``python main.py solve "2x + 3 = 7"``).
"""

import sys

from mathcore.cli import main

if __name__ == "__main__":
    sys.exit(main())

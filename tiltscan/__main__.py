"""
Main entry point for the tilt screening package.

Allows running: python -m tiltscan <command>
"""

import sys
from tiltscan.cli import main

if __name__ == "__main__":
    sys.exit(main())

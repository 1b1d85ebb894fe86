"""
Run the Night City CLI.

Usage:
    python -m nightcity replay story.txt
"""

import sys

from .interface.cli import main

sys.exit(main())

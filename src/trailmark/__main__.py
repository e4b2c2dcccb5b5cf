"""Entry point for running trailmark as a module.

Usage:
    python -m trailmark [command] [options]
"""

from trailmark.cli import main

if __name__ == "__main__":
    main()

"""mixver CLI entry point.

This module enables running mixver as:
    python -m mixver <command>
"""

from mixver.cli import main

if __name__ == "__main__":
    main()

"""Module entry point for running with python -m doc2notebook."""

import sys

from doc2notebook.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""Main module for feed_normalizer.

This module allows the CLI to be run as a Python module using:
python -m feed_normalizer

It delegates to the command line interface's main group.
"""

from feed_normalizer.cli import main

if __name__ == "__main__":
    main(prog_name="feed-normalizer")

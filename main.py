#!/usr/bin/env python3
"""
SrtGen Entry Point Script

Runs the HTTP API (`serve`) or transcribes a single local file (`transcribe`).
"""

import sys
from srtgen.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 9):
        sys.stderr.write("SrtGen requires Python 3.9 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()

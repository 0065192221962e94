#!/usr/bin/env python3
"""
Go Code Generator

Reads a parsed IDL program (JSON AST document) and generates a Go package:
  1. ttypes.go with typedefs, enums, structs and exceptions
  2. constants.go
  3. one file per service plus a <service>-remote command line invoker

Usage:
    python generate_go.py tutorial.json --output-dir generated/
    python generate_go.py tutorial.json -o generated/ --options package_prefix=example.com/gen/ -r
"""

import sys
from pathlib import Path

# Add parent directory to path so gogen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from gogen.cli import main


if __name__ == "__main__":
    sys.exit(main())

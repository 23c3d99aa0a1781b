#!/usr/bin/env python3
"""bfvm Command Line Interface.

Run programs from a source checkout without installing the package.

Usage:
    python main.py programs/hello.bf
    python main.py programs/reverse.bf --input "stressed"
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from bfvm.cli import main


if __name__ == "__main__":
    sys.exit(main())

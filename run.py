#!/usr/bin/env python3
"""
Eos Bridge Launcher

    python run.py --simulation --log-level DEBUG
"""

import sys

from eosbridge.main import main

if __name__ == "__main__":
    sys.exit(main())

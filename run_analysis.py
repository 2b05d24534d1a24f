#!/usr/bin/env python3
"""
Entry point script for running the forecast condensation analysis directly
for the venue in Settings.json.
"""

import sys
from condensation_watchdog.main import main

if __name__ == "__main__":
    sys.exit(main(["forecast", "--excel"] + sys.argv[1:]))

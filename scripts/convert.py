#!/usr/bin/env python3
"""Convert between .paint files and images from a repository checkout.

Same commands as the installed `jop-paint` entry point (see jop_paint/cli.py).

Usage:
    python scripts/convert.py info art.paint
    python scripts/convert.py to-image art.paint -o art.png --scale 8
    python scripts/convert.py to-paint sunset.png --canvas-type 1 --title Sunset --author Me
    python scripts/convert.py split sunset.png -d out/ --grid 2 2 --title Sunset --manifest
    python scripts/convert.py --config configs/converter.v1.yaml --log-level DEBUG info art.paint
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from jop_paint.cli import run

if __name__ == "__main__":
    run()

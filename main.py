#!/usr/bin/env python3
"""
Gesture Lab entry point.

Usage:
    python main.py                     # default config
    python main.py --strategy crop     # hand-crop classifier
    python main.py --autostart         # open the camera immediately
"""

from gesturelab.app import main

if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Launcher script for the Rear Suspension Kinematics Analyzer.

This script provides an easy way to run the analyzer from the project root.
"""

import sys
import os

# Add the src directory to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from mtb_kinematics.main import main

if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python
"""
Launcher script for the Delivery Scan Tracker application.

This script ensures the correct Python path is set before launching the app.

Example:
    python run.py --report-id R-100 --employee-id E-7 --package-ids P1,P2
"""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from src.main import main

if __name__ == "__main__":
    main()

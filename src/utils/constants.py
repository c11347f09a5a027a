"""
Constants for the Delivery Scan Tracker application.

This module defines all system-wide constants including:
- Application metadata
- Local storage file names and keys
- Display labels for the delivery check screen
- Remote call defaults
"""

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Delivery Scan Tracker"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# ============================================================================
# Storage
# ============================================================================

DATABASE_FILENAME = "delivery_tracker.db"

# Local scan ledger file and the fixed key the scan sets live under
LEDGER_FILENAME = "scan_ledger.json"
LEDGER_STORAGE_KEY = "@QRDATA"

# ============================================================================
# Delivery Check Screen Labels
# ============================================================================

# Transition control labels, keyed by confirmed report status
LABEL_START_DELIVERY = "Start Delivery"
LABEL_COMPLETE_DELIVERY = "Complete"
LABEL_DELIVERY_COMPLETED = "Delivery Completed"

# Per-package row labels
ROW_STATUS_COMPLETE = "Complete"
ROW_STATUS_NOT_STARTED = "Not started"

# ============================================================================
# Remote Calls
# ============================================================================

# Seconds before a store call is abandoned and treated as failed
DEFAULT_REMOTE_TIMEOUT_SECONDS = 10.0

# ============================================================================
# UI Constants
# ============================================================================

DEFAULT_WINDOW_WIDTH = 720
DEFAULT_WINDOW_HEIGHT = 520

COLOR_COMPLETE = "#2E7D32"  # Green
COLOR_NOT_STARTED = "#757575"  # Gray

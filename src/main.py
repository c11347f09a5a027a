"""
Main entry point for the Delivery Scan Tracker application.

This module initializes the application, sets up the database, and
opens the delivery check window for one report.
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional

import customtkinter as ctk

from src.services.database import close_connections, initialize_app_database
from src.services.scan_ledger_service import get_scan_ledger
from src.ui.delivery_check_controller import DeliveryCheckController
from src.ui.delivery_check_frame import create_delivery_check_window
from src.ui.utils.async_runner import AsyncRunner
from src.utils.config import get_config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse launcher arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])
    """
    parser = argparse.ArgumentParser(
        description="Check package scans for a delivery report and advance its status",
    )
    parser.add_argument("--report-id", required=True, help="Report to deliver")
    parser.add_argument("--employee-id", default=None, help="Employee performing the delivery")
    parser.add_argument(
        "--package-ids",
        default="",
        help="Comma-separated package IDs expected on the delivery",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def initialize_application() -> bool:
    """
    Initialize the application.

    Returns:
        True if initialization successful, False otherwise
    """
    try:
        print("Initializing database...")
        initialize_app_database()
        print("Database initialized successfully")
        return True

    except Exception as e:
        print(f"ERROR: Failed to initialize application: {e}")
        traceback.print_exc()
        return False


def main(argv: Optional[List[str]] = None):
    """
    Main application entry point.

    Initializes the application and launches the delivery check window.
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctk.set_appearance_mode("system")
    ctk.set_default_color_theme("blue")

    config = get_config()
    print(f"Starting {config.app_name} v{config.app_version}")
    print(f"Environment: {config.environment}")
    print(f"Scan ledger: {config.ledger_path}")

    if not initialize_application():
        print("Application initialization failed. Exiting.")
        sys.exit(1)

    runner = AsyncRunner()
    runner.start()

    try:
        controller = DeliveryCheckController(
            report_id=args.report_id,
            employee_id=args.employee_id,
            package_ids=args.package_ids,
            ledger=get_scan_ledger(),
            timeout=config.remote_timeout,
        )
        app = create_delivery_check_window(controller, runner)
        app.mainloop()

    except Exception as e:
        print(f"ERROR: Application crashed: {e}")
        traceback.print_exc()
        sys.exit(1)

    finally:
        runner.stop()
        close_connections()

    print("Application closed successfully")
    sys.exit(0)


if __name__ == "__main__":
    main()

"""
Database models package.

This package contains the SQLAlchemy ORM models for the remote
report/package store.
"""

from .base import Base, BaseModel
from .report_status import ReportStatus
from .report import Report
from .package import Package

__all__ = [
    "Base",
    "BaseModel",
    "ReportStatus",
    "Report",
    "Package",
]

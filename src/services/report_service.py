"""
Report Service - Remote report/package store.

This service provides:
- Package manifest lookup by report and identifier set
- Report status point query and point update
- Report and package creation (seeding and tests)

Every function opens its own session via session_scope() and returns
plain dicts or enums, never attached ORM instances.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from src.models import Package, Report, ReportStatus
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, ReportNotFound, ValidationError
from src.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def _package_to_dict(package: Package) -> Dict[str, Any]:
    return {
        "package_id": package.package_id,
        "product_name": package.product_name,
        "report_id": package.report_id,
    }


def fetch_packages(
    report_id: str,
    package_ids: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch the package manifest for a report.

    Args:
        report_id: Owning report
        package_ids: Optional identifier set to restrict the query to. When
            given, results follow the order of this sequence and identifiers
            with no matching package are skipped. When None, every package
            owned by the report is returned, ordered by package_id.

    Returns:
        List of package dicts with package_id, product_name and report_id

    Raises:
        DatabaseError: If the query fails
    """
    if package_ids is not None and not package_ids:
        return []

    try:
        with session_scope() as session:
            query = session.query(Package).filter(Package.report_id == report_id)
            if package_ids is not None:
                query = query.filter(Package.package_id.in_(list(package_ids)))
            else:
                query = query.order_by(Package.package_id)

            packages = [_package_to_dict(p) for p in query.all()]

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to fetch packages for report {report_id}", e)

    if package_ids is not None:
        position = {pid: index for index, pid in enumerate(package_ids)}
        packages.sort(key=lambda p: position[p["package_id"]])

    log_operation(
        logger,
        operation="fetch_packages",
        outcome="success",
        level=logging.DEBUG,
        report_id=report_id,
        count=len(packages),
    )
    return packages


def fetch_report_status(report_id: str) -> ReportStatus:
    """
    Get the current lifecycle status of a report.

    Args:
        report_id: Report to look up

    Returns:
        ReportStatus (unknown stored values read as NOT_STARTED)

    Raises:
        ReportNotFound: If no report has this ID
        DatabaseError: If the query fails
    """
    try:
        with session_scope() as session:
            report = session.query(Report).filter(Report.report_id == report_id).first()
            if report is None:
                raise ReportNotFound(report_id)
            return report.report_status

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to fetch status for report {report_id}", e)


def update_report_status(
    report_id: str,
    new_status: ReportStatus,
    expected_status: Optional[ReportStatus] = None,
) -> int:
    """
    Set the status of a report.

    With expected_status the update is a compare-and-set: it only applies
    if the stored status still maps to expected_status. NOT_STARTED matches
    NULL and any unrecognized stored value.

    Args:
        report_id: Report to update
        new_status: Target status
        expected_status: Optional status the report must currently have

    Returns:
        Number of rows updated (1 on success, 0 on missing report or
        status mismatch)

    Raises:
        DatabaseError: If the update fails
    """
    try:
        with session_scope() as session:
            query = session.query(Report).filter(Report.report_id == report_id)

            if expected_status == ReportStatus.NOT_STARTED:
                active = [ReportStatus.IN_PROGRESS.value, ReportStatus.COMPLETED.value]
                query = query.filter(or_(Report.status.is_(None), Report.status.not_in(active)))
            elif expected_status is not None:
                query = query.filter(Report.status == expected_status.value)

            rows = query.update({Report.status: new_status.value}, synchronize_session=False)

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update status for report {report_id}", e)

    log_operation(
        logger,
        operation="update_report_status",
        outcome="success" if rows == 1 else "no_match",
        level=logging.INFO if rows == 1 else logging.WARNING,
        report_id=report_id,
        new_status=new_status.value,
        rows=rows,
    )
    return rows


def create_report(
    report_id: str,
    employee_id: Optional[str] = None,
    status: Optional[str] = ReportStatus.NOT_STARTED.value,
) -> Dict[str, Any]:
    """
    Create a report.

    Args:
        report_id: External report identifier
        employee_id: Assigned employee
        status: Raw stored status (defaults to "Not Started")

    Returns:
        Dict with report_id, employee_id and status

    Raises:
        ValidationError: If report_id is empty
        DatabaseError: If the insert fails (including duplicate report_id)
    """
    if not report_id or not report_id.strip():
        raise ValidationError(["Report ID is required"])

    try:
        with session_scope() as session:
            report = Report(report_id=report_id.strip(), employee_id=employee_id, status=status)
            session.add(report)
            session.flush()
            return {
                "report_id": report.report_id,
                "employee_id": report.employee_id,
                "status": report.status,
            }

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to create report {report_id}", e)


def create_package(
    package_id: str,
    report_id: str,
    product_name: str = "",
) -> Dict[str, Any]:
    """
    Create a package on a report's manifest.

    Args:
        package_id: Package identifier (as encoded in its QR label)
        report_id: Owning report
        product_name: Display name

    Returns:
        Package dict

    Raises:
        ValidationError: If package_id is empty
        DatabaseError: If the insert fails (including duplicate package_id)
    """
    if not package_id or not package_id.strip():
        raise ValidationError(["Package ID is required"])

    try:
        with session_scope() as session:
            package = Package(
                package_id=package_id.strip(),
                report_id=report_id,
                product_name=product_name,
            )
            session.add(package)
            session.flush()
            return _package_to_dict(package)

    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to create package {package_id}", e)

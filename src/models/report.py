"""
Report model for delivery reports.

A report is one delivery run assigned to an employee. Its status is
mutated only through the delivery state machine.
"""

from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship

from .base import BaseModel
from .report_status import ReportStatus


class Report(BaseModel):
    """
    Delivery report.

    Attributes:
        report_id: External report identifier (unique)
        employee_id: Employee the delivery is assigned to
        status: Stored status text. Kept as a plain string rather than an
            Enum column so rows written by other clients with unexpected
            values still load; read it through `report_status`.
    """

    __tablename__ = "reports"

    report_id = Column(String(64), nullable=False, unique=True)
    employee_id = Column(String(64), nullable=True)
    status = Column(String(32), nullable=True, default=ReportStatus.NOT_STARTED.value)

    packages = relationship("Package", back_populates="report")

    __table_args__ = (Index("idx_report_employee", "employee_id"),)

    @property
    def report_status(self) -> ReportStatus:
        """Status mapped onto the three-state lifecycle."""
        return ReportStatus.from_value(self.status)

    def __repr__(self) -> str:
        return f"Report(report_id='{self.report_id}', status='{self.status}')"

"""
Package model for delivery manifests.

A package belongs to exactly one report. The set of packages for a
report is the manifest that must be fully scanned before the delivery
can be completed.
"""

from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Package(BaseModel):
    """
    Package expected on a delivery.

    Attributes:
        package_id: Package identifier encoded in the package's QR label (unique)
        product_name: Display name of the packaged product
        report_id: Owning report identifier
    """

    __tablename__ = "packages"

    package_id = Column(String(64), nullable=False, unique=True)
    product_name = Column(String(200), nullable=False, default="")
    report_id = Column(
        String(64),
        ForeignKey("reports.report_id", ondelete="CASCADE"),
        nullable=True,
    )

    report = relationship("Report", back_populates="packages")

    __table_args__ = (Index("idx_package_report", "report_id"),)

    def __repr__(self) -> str:
        return f"Package(package_id='{self.package_id}', product_name='{self.product_name}')"

"""Academic hierarchy models carrying fee overrides.

Course → Department → Batch. Every level may override any fee column; a
NULL column means "inherit from the level above".
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from institute_billing.core.database import BaseModel


class FeeOverrideMixin:
    """Nullable fee columns shared by every hierarchy level."""

    # Online (and residency-agnostic) fees
    monthly_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    admission_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sadka_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Offline counterparts
    monthly_fee_offline: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    admission_fee_offline: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sadka_fee_offline: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Probashi (expatriate) variants
    monthly_fee_probashi: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    admission_fee_probashi: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)


class Course(FeeOverrideMixin, BaseModel):
    """Top of the hierarchy."""

    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_months: Mapped[int | None] = mapped_column(Integer, nullable=True)

    departments: Mapped[list["Department"]] = relationship("Department", back_populates="course")

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name={self.name})>"


class Department(FeeOverrideMixin, BaseModel):
    """Department within a course."""

    __tablename__ = "departments"

    course_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    course: Mapped["Course | None"] = relationship("Course", back_populates="departments")
    batches: Mapped[list["Batch"]] = relationship("Batch", back_populates="department")

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name})>"


class Batch(FeeOverrideMixin, BaseModel):
    """Cohort of students; the most specific fee level."""

    __tablename__ = "batches"

    department_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    department: Mapped["Department | None"] = relationship("Department", back_populates="batches")
    enrollments: Mapped[list["Enrollment"]] = relationship("Enrollment", back_populates="batch")

    def __repr__(self) -> str:
        return f"<Batch(id={self.id}, name={self.name})>"

"""Student and enrollment models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from institute_billing.core.database import BaseModel


class StudyMode(str, Enum):
    """Delivery channel; each has its own fee columns."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class FeeTier(str, Enum):
    """Fee classification of a student."""

    GENERAL = "GENERAL"
    SADKA = "SADKA"  # Subsidized / waived


class Residency(str, Enum):
    """Local or expatriate (probashi) student."""

    LOCAL = "LOCAL"
    PROBASHI = "PROBASHI"


class Student(BaseModel):
    """Billable student. Deactivated instead of deleted."""

    __tablename__ = "students"

    student_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    mode: Mapped[StudyMode] = mapped_column(
        String(20),
        default=StudyMode.ONLINE,
        server_default=StudyMode.ONLINE.value,
    )
    fee_tier: Mapped[FeeTier] = mapped_column(
        String(20),
        default=FeeTier.GENERAL,
        server_default=FeeTier.GENERAL.value,
    )
    residency: Mapped[Residency] = mapped_column(
        String(20),
        default=Residency.LOCAL,
        server_default=Residency.LOCAL.value,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
    )

    # Relationships
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="student",
        order_by="Enrollment.joined_at.desc()",
    )
    plan_history: Mapped[list["PlanHistory"]] = relationship(
        "PlanHistory",
        back_populates="student",
        order_by="PlanHistory.start_date.desc()",
    )
    invoices: Mapped[list["MonthlyInvoice"]] = relationship(
        "MonthlyInvoice", back_populates="student"
    )

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.full_name})>"


class Enrollment(BaseModel):
    """Student placed in a batch. Superseded, never edited."""

    __tablename__ = "enrollments"

    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    student: Mapped["Student"] = relationship("Student", back_populates="enrollments")
    batch: Mapped["Batch | None"] = relationship("Batch", back_populates="enrollments")

    def __repr__(self) -> str:
        return f"<Enrollment(student={self.student_id}, batch={self.batch_id})>"

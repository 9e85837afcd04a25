"""Flat-fee plans and their per-student timeline."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from institute_billing.core.database import BaseModel


class Plan(BaseModel):
    """Named monthly fee, independent of the academic hierarchy."""

    __tablename__ = "plans"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    monthly_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    history: Mapped[list["PlanHistory"]] = relationship("PlanHistory", back_populates="plan")

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name}, fee={self.monthly_fee})>"


class PlanHistory(BaseModel):
    """Plan assignment interval. end_date IS NULL marks the current plan."""

    __tablename__ = "plan_history"

    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    student: Mapped["Student"] = relationship("Student", back_populates="plan_history")
    plan: Mapped["Plan"] = relationship("Plan", back_populates="history")

    @property
    def is_current(self) -> bool:
        return self.end_date is None

"""Monthly invoice ledger and payment transactions."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from institute_billing.core.database import BaseModel

# Reserved month value for a standalone one-time admission invoice
ADMISSION_MONTH = 0


class InvoiceStatus(str, Enum):
    """Invoice payment status."""

    UNPAID = "UNPAID"
    PAID = "PAID"


class FundType(str, Enum):
    """Fund a payment is credited to."""

    ADMISSION = "ADMISSION"
    MONTHLY = "MONTHLY"


class EntryType(str, Enum):
    """Ledger entry direction."""

    CR = "CR"
    DR = "DR"


class MonthlyInvoice(BaseModel):
    """One invoice per student per period. Immutable once PAID."""

    __tablename__ = "monthly_invoices"
    __table_args__ = (
        UniqueConstraint("student_id", "month", "year", name="uq_invoice_student_period"),
    )

    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    plan_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("plans.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Period: month 1-12, or ADMISSION_MONTH
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    admission_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )  # Admission portion folded into amount

    status: Mapped[InvoiceStatus] = mapped_column(
        String(20),
        default=InvoiceStatus.UNPAID,
        server_default=InvoiceStatus.UNPAID.value,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="invoices")
    plan: Mapped["Plan | None"] = relationship("Plan")
    transactions: Mapped[list["LedgerTransaction"]] = relationship(
        "LedgerTransaction", back_populates="invoice"
    )

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def is_admission(self) -> bool:
        return self.month == ADMISSION_MONTH

    @property
    def monthly_amount(self) -> Decimal:
        """Amount without the folded admission portion."""
        return self.amount - self.admission_amount

    def __repr__(self) -> str:
        return (
            f"<MonthlyInvoice(id={self.id}, student={self.student_id}, "
            f"period={self.month}/{self.year}, status={self.status})>"
        )


class LedgerTransaction(BaseModel):
    """Credit recorded against an invoice when it is paid."""

    __tablename__ = "ledger_transactions"

    invoice_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("monthly_invoices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    fund_type: Mapped[FundType] = mapped_column(String(20), nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(
        String(2),
        default=EntryType.CR,
        server_default=EntryType.CR.value,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    reference_id: Mapped[str | None] = mapped_column(String(100), index=True)

    invoice: Mapped["MonthlyInvoice | None"] = relationship(
        "MonthlyInvoice", back_populates="transactions"
    )

    def __repr__(self) -> str:
        return f"<LedgerTransaction(id={self.id}, amount={self.amount}, {self.entry_type})>"

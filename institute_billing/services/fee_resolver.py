"""Fee resolution over the plan and the Batch → Department → Course hierarchy.

Every fee column is resolved by walking the hierarchy from the most specific
level (Batch) to the least specific (Course) and taking the first value that
is set. When no level configures a fee the student owes 0 for it: an empty
fee structure means "free", not "misconfigured".

An active Plan replaces the hierarchy monthly fee. Admission is always taken
from the hierarchy, a Plan has no admission fee.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from institute_billing.core.exceptions import InvalidHierarchyState
from institute_billing.models.plan import Plan
from institute_billing.models.student import (
    Enrollment,
    FeeTier,
    Residency,
    Student,
    StudyMode,
)
from institute_billing.schemas.fee import ZERO, FeeOverrides, FeeQuote

logger = logging.getLogger(__name__)

# Monthly fee column for every (mode, tier) combination
MONTHLY_FEE_FIELDS: dict[tuple[StudyMode, FeeTier], str] = {
    (StudyMode.ONLINE, FeeTier.GENERAL): "monthly_fee",
    (StudyMode.OFFLINE, FeeTier.GENERAL): "monthly_fee_offline",
    (StudyMode.ONLINE, FeeTier.SADKA): "sadka_fee",
    (StudyMode.OFFLINE, FeeTier.SADKA): "sadka_fee_offline",
}

# Admission fee column per mode; tier never changes admission
ADMISSION_FEE_FIELDS: dict[StudyMode, str] = {
    StudyMode.ONLINE: "admission_fee",
    StudyMode.OFFLINE: "admission_fee_offline",
}

MONTHLY_FEE_PROBASHI = "monthly_fee_probashi"
ADMISSION_FEE_PROBASHI = "admission_fee_probashi"


def first_defined(values: Iterable[Decimal | None]) -> Decimal:
    """First value that is not None, else 0."""
    for value in values:
        if value is not None:
            return Decimal(value)
    return ZERO


def field_chain(levels: Sequence[FeeOverrides], field: str) -> list[Decimal | None]:
    """Values of one fee column ordered Batch → Department → Course."""
    return [getattr(level, field) for level in levels]


def hierarchy_levels(enrollment: Enrollment) -> list[FeeOverrides]:
    """Fee overrides of the enrollment's batch, department and course.

    Raises InvalidHierarchyState when any link of the chain is missing.
    """
    batch = enrollment.batch
    if batch is None:
        raise InvalidHierarchyState(
            "Enrollment has no batch", enrollment_id=str(enrollment.id)
        )
    department = batch.department
    if department is None:
        raise InvalidHierarchyState("Batch has no department", batch_id=str(batch.id))
    course = department.course
    if course is None:
        raise InvalidHierarchyState(
            "Department has no course", department_id=str(department.id)
        )
    return [FeeOverrides.model_validate(level) for level in (batch, department, course)]


def resolve_monthly_fee(
    levels: Sequence[FeeOverrides],
    mode: StudyMode,
    tier: FeeTier,
    residency: Residency = Residency.LOCAL,
) -> Decimal:
    """Hierarchy monthly fee for a mode/tier.

    A GENERAL-tier probashi student pays the probashi fee, falling back to the
    online monthly fee whatever the mode.
    """
    if residency == Residency.PROBASHI and tier == FeeTier.GENERAL:
        chain = field_chain(levels, MONTHLY_FEE_PROBASHI) + field_chain(
            levels, MONTHLY_FEE_FIELDS[(StudyMode.ONLINE, FeeTier.GENERAL)]
        )
    else:
        chain = field_chain(levels, MONTHLY_FEE_FIELDS[(mode, tier)])
    return first_defined(chain)


def resolve_admission_fee(
    levels: Sequence[FeeOverrides],
    mode: StudyMode,
    residency: Residency = Residency.LOCAL,
) -> Decimal:
    """Hierarchy admission fee for a mode.

    Probashi students pay the probashi admission fee, falling back to the
    online admission fee whatever the mode.
    """
    if residency == Residency.PROBASHI:
        chain = field_chain(levels, ADMISSION_FEE_PROBASHI) + field_chain(
            levels, ADMISSION_FEE_FIELDS[StudyMode.ONLINE]
        )
    else:
        chain = field_chain(levels, ADMISSION_FEE_FIELDS[mode])
    return first_defined(chain)


def resolve_fee(
    student: Student,
    enrollment: Enrollment | None,
    active_plan: Plan | None,
) -> FeeQuote:
    """Resolve the monthly and admission amounts a student owes.

    Pure: reads only the objects passed in. A hierarchy with a gap resolves
    to 0 for every hierarchy-derived amount; an active plan still sets the
    monthly amount in that case.
    """
    mode = StudyMode(student.mode)
    tier = FeeTier(student.fee_tier)
    residency = Residency(student.residency)

    levels: list[FeeOverrides] = []
    if enrollment is not None:
        try:
            levels = hierarchy_levels(enrollment)
        except InvalidHierarchyState as exc:
            logger.warning(
                "Fee hierarchy gap for student %s: %s %s", student.id, exc.message, exc.details
            )

    admission_amount = resolve_admission_fee(levels, mode, residency) if levels else ZERO

    if active_plan is not None:
        return FeeQuote(
            monthly_amount=Decimal(active_plan.monthly_fee),
            admission_amount=admission_amount,
            plan_id=active_plan.id,
        )

    monthly_amount = resolve_monthly_fee(levels, mode, tier, residency) if levels else ZERO
    return FeeQuote(monthly_amount=monthly_amount, admission_amount=admission_amount)

"""Bucket split calculation for contributions.

Every contribution is divided between the LIFT and ALUMNI_ASSOCIATION
buckets. BASIC contributions follow the system-wide default split, which the
caller reads from the settings store and passes in; ADDITIONAL contributions
carry their own percentages.

Amounts are Decimal throughout. The AA amount is derived as
``amount - lift_amount`` so the two shares always add back to the amount to
the cent, and recomputing from a stored row's amount and percentages
reproduces its stored amounts exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from app.core.errors import ValidationAPIError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
PERCENTAGE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class SplitResult:
    lift_percentage: Decimal
    aa_percentage: Decimal
    lift_amount: Decimal
    aa_amount: Decimal


def _to_decimal(value: object, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationAPIError(f"{field} must be a number", field=field)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationAPIError(f"{field} must be a number", field=field) from e
    if not number.is_finite():
        raise ValidationAPIError(f"{field} must be a finite number", field=field)
    return number


def to_money(value: object, field: str = "amount") -> Decimal:
    """Parse a positive monetary amount rounded to cents."""
    amount = _to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationAPIError("Invalid amount: must be greater than zero", field=field)
    return amount


def to_percentage(value: object, field: str) -> Decimal:
    """Parse a percentage in [0, 100] rounded to two places."""
    pct = _to_decimal(value, field)
    if pct < 0 or pct > HUNDRED:
        raise ValidationAPIError(f"{field} must be between 0 and 100", field=field)
    return pct.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_percentage_pair(
    lift_percentage: object, aa_percentage: object
) -> tuple[Decimal, Decimal]:
    """Validate a caller-supplied split for an ADDITIONAL contribution."""
    if lift_percentage is None or aa_percentage is None:
        raise ValidationAPIError(
            "ADDITIONAL contributions require both lift_percentage and aa_percentage",
            errors=[
                {"field": name, "message": "required for ADDITIONAL contributions"}
                for name, value in (
                    ("lift_percentage", lift_percentage),
                    ("aa_percentage", aa_percentage),
                )
                if value is None
            ],
        )

    lift_raw = _to_decimal(lift_percentage, "lift_percentage")
    aa_raw = _to_decimal(aa_percentage, "aa_percentage")
    if abs(lift_raw + aa_raw - HUNDRED) > PERCENTAGE_TOLERANCE:
        raise ValidationAPIError(
            f"Percentages must sum to 100 (got {lift_raw + aa_raw})",
            errors=[
                {"field": "lift_percentage", "message": "lift + aa must equal 100"},
                {"field": "aa_percentage", "message": "lift + aa must equal 100"},
            ],
        )

    return (
        to_percentage(lift_raw, "lift_percentage"),
        to_percentage(aa_raw, "aa_percentage"),
    )


def split_amount(
    amount: Decimal, lift_percentage: Decimal, aa_percentage: Decimal
) -> SplitResult:
    """Apply already-validated percentages to an amount."""
    lift_amount = (amount * lift_percentage / HUNDRED).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    return SplitResult(
        lift_percentage=lift_percentage,
        aa_percentage=aa_percentage,
        lift_amount=lift_amount,
        aa_amount=amount - lift_amount,
    )


def compute_split(
    amount: object,
    contribution_type: str,
    lift_percentage: Optional[object] = None,
    aa_percentage: Optional[object] = None,
    default_lift_percentage: object = Decimal("50"),
) -> SplitResult:
    """
    Compute the LIFT/AA split for a contribution.

    Args:
        amount: Contribution amount (must be > 0)
        contribution_type: "BASIC" or "ADDITIONAL"
        lift_percentage: Caller-supplied LIFT share, ADDITIONAL only
        aa_percentage: Caller-supplied AA share, ADDITIONAL only
        default_lift_percentage: System default LIFT share used for BASIC

    Returns:
        SplitResult with the percentages and amounts to store

    Raises:
        ValidationAPIError: invalid amount, unknown type, or a bad
            ADDITIONAL split
    """
    money = to_money(amount)

    if contribution_type == "BASIC":
        lift_pct = to_percentage(default_lift_percentage, "default_lift_percentage")
        # Supplied percentages are ignored for BASIC
        return split_amount(money, lift_pct, HUNDRED - lift_pct)

    if contribution_type == "ADDITIONAL":
        lift_pct, aa_pct = validate_percentage_pair(lift_percentage, aa_percentage)
        return split_amount(money, lift_pct, aa_pct)

    raise ValidationAPIError(
        f"Invalid contribution type: {contribution_type}", field="type"
    )

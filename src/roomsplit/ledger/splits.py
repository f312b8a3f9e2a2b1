"""Core split logic: equal splits and the per-member payment state machine.

Everything here is a pure function over models. Callers load an expense,
derive the new split list with these helpers, and persist the result.
"""

import logging
import math

from ..exceptions import ValidationError
from ..models import SPLIT_STATUSES, Member, SplitDetail

logger = logging.getLogger(__name__)


def coerce_amount(value: object, field: str) -> float:
    """
    Turn caller input into a finite, non-negative float.

    Args:
        value: A number or numeric string
        field: Field name reported on validation failure

    Returns:
        The amount as float

    Raises:
        ValidationError: If the value is not a finite non-negative number
    """
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a number")
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ValidationError(field, f"{field} must be a number") from e
    if not math.isfinite(amount):
        raise ValidationError(field, f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(field, f"{field} must not be negative")
    return amount


def compute_equal_splits(
    members: list[Member], payer_id: str, total_amount: float
) -> list[SplitDetail]:
    """
    Split an expense equally across every current member, payer included.

    The payer's own entry owes nothing and starts paid; every other member
    owes total_amount / n and starts pending.

    Args:
        members: Room membership at creation time
        payer_id: The member who paid
        total_amount: Expense total (> 0)

    Returns:
        One split per member, in membership order

    Raises:
        ValidationError: If the room has no members
    """
    if not members:
        raise ValidationError("room_id", "Room has no members")

    share = total_amount / len(members)
    splits = []
    for member in members:
        if member.user_id == payer_id:
            splits.append(
                SplitDetail(
                    user_id=member.user_id,
                    share_amount=0.0,
                    paid_amount=0.0,
                    status="paid",
                )
            )
        else:
            splits.append(
                SplitDetail(
                    user_id=member.user_id,
                    share_amount=share,
                    paid_amount=0.0,
                    status="pending",
                )
            )

    logger.debug(f"Split {total_amount} across {len(members)} members ({share} each)")
    return splits


def is_fully_settled(splits: list[SplitDetail]) -> bool:
    """An expense is archived exactly when every split is paid."""
    return all(split.status == "paid" for split in splits)


def apply_status(split: SplitDetail, status: str) -> SplitDetail:
    """
    Set a split's status explicitly.

    Marking paid pins paid_amount to share_amount. Marking pending keeps
    whatever paid_amount was recorded, so partial payment history survives
    an unmark.

    Raises:
        ValidationError: If status is not 'paid' or 'pending'
    """
    if status not in SPLIT_STATUSES:
        raise ValidationError("status", 'Status must be "paid" or "pending"')

    if status == "paid":
        return split.model_copy(
            update={"status": "paid", "paid_amount": split.share_amount}
        )
    return split.model_copy(update={"status": "pending"})


def apply_partial_payment(
    split: SplitDetail,
    paid_amount: object | None = None,
    share_amount: object | None = None,
) -> SplitDetail:
    """
    Record a (partial) payment and/or correct the owed share.

    The share is overwritten first, then paid_amount is clamped to the
    current share. Status is derived from the two numbers and stays binary:
    'paid' once paid reaches share (paid is snapped to share exactly),
    'pending' otherwise, whether nothing or part has been paid.

    Raises:
        ValidationError: If neither amount is given, an amount is not a
                         non-negative number, or share_amount is zero
    """
    if paid_amount is None and share_amount is None:
        raise ValidationError(
            "paid_amount", "Provide paid_amount, share_amount, or both"
        )

    share = split.share_amount
    paid = split.paid_amount

    if share_amount is not None:
        share = coerce_amount(share_amount, "share_amount")
        if share <= 0:
            raise ValidationError("share_amount", "share_amount must be greater than 0")

    if paid_amount is not None:
        paid = min(coerce_amount(paid_amount, "paid_amount"), share)

    if paid >= share:
        return split.model_copy(
            update={"share_amount": share, "paid_amount": share, "status": "paid"}
        )
    return split.model_copy(
        update={"share_amount": share, "paid_amount": paid, "status": "pending"}
    )


def replace_split(splits: list[SplitDetail], updated: SplitDetail) -> list[SplitDetail]:
    """Return a new split list with the entry for updated.user_id swapped in."""
    return [updated if s.user_id == updated.user_id else s for s in splits]

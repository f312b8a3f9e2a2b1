"""Tests for the pure split functions and the per-member state machine."""

import pytest

from roomsplit.exceptions import ValidationError
from roomsplit.ledger.splits import (
    apply_partial_payment,
    apply_status,
    coerce_amount,
    compute_equal_splits,
    is_fully_settled,
    replace_split,
)
from roomsplit.models import Member, SplitDetail


def make_members(*ids: str) -> list[Member]:
    """Create members with placeholder emails."""
    return [Member(user_id=i, email=f"{i}@example.com", name=i) for i in ids]


def pending(share: float, paid: float = 0.0) -> SplitDetail:
    return SplitDetail(user_id="b", share_amount=share, paid_amount=paid, status="pending")


class TestComputeEqualSplits:
    """Tests for equal split computation."""

    def test_three_members_payer_owes_nothing(self):
        """300 across A, B, C: B and C owe 100, A owes 0 and is paid."""
        splits = compute_equal_splits(make_members("a", "b", "c"), "a", 300.0)

        by_user = {s.user_id: s for s in splits}
        assert by_user["a"].share_amount == 0
        assert by_user["a"].status == "paid"
        assert by_user["b"].share_amount == 100
        assert by_user["b"].status == "pending"
        assert by_user["c"].share_amount == 100
        assert all(s.paid_amount == 0 for s in splits)
        assert not is_fully_settled(splits)

    @pytest.mark.parametrize("n", [2, 3, 4, 7])
    def test_shares_sum_to_non_payer_portion(self, n):
        """Sum of shares equals total * (n - 1) / n."""
        ids = [f"u{i}" for i in range(n)]
        splits = compute_equal_splits(make_members(*ids), "u0", 100.0)

        assert len(splits) == n
        assert sum(s.share_amount for s in splits) == pytest.approx(100.0 * (n - 1) / n)

    def test_keeps_membership_order(self):
        splits = compute_equal_splits(make_members("c", "a", "b"), "a", 30.0)
        assert [s.user_id for s in splits] == ["c", "a", "b"]

    def test_single_member_room_is_settled_immediately(self):
        splits = compute_equal_splits(make_members("a"), "a", 50.0)

        assert len(splits) == 1
        assert is_fully_settled(splits)

    def test_no_members_rejected(self):
        with pytest.raises(ValidationError, match="no members"):
            compute_equal_splits([], "a", 50.0)


class TestApplyStatus:
    """Tests for explicit status updates."""

    def test_paid_pins_paid_amount_to_share(self):
        split = apply_status(pending(100.0, paid=40.0), "paid")

        assert split.status == "paid"
        assert split.paid_amount == 100.0

    def test_marking_paid_twice_is_idempotent(self):
        once = apply_status(pending(100.0), "paid")
        twice = apply_status(once, "paid")

        assert twice == once

    def test_unmark_keeps_paid_amount(self):
        """Going back to pending preserves the recorded payment."""
        paid = apply_status(pending(100.0), "paid")
        unmarked = apply_status(paid, "pending")

        assert unmarked.status == "pending"
        assert unmarked.paid_amount == 100.0

    def test_unmark_keeps_partial_payment(self):
        unmarked = apply_status(pending(100.0, paid=30.0), "pending")
        assert unmarked.paid_amount == 30.0

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            apply_status(pending(100.0), "partial")
        assert exc_info.value.field == "status"

    def test_does_not_mutate_input(self):
        original = pending(100.0)
        apply_status(original, "paid")
        assert original.status == "pending"


class TestApplyPartialPayment:
    """Tests for partial payments and share corrections."""

    def test_partial_payment_stays_pending(self):
        split = apply_partial_payment(pending(100.0), paid_amount=40)

        assert split.status == "pending"
        assert split.paid_amount == 40.0

    def test_full_payment_marks_paid(self):
        split = apply_partial_payment(pending(100.0), paid_amount=100)

        assert split.status == "paid"
        assert split.paid_amount == 100.0

    def test_overpayment_clamps_to_share(self):
        split = apply_partial_payment(pending(100.0), paid_amount=250)

        assert split.paid_amount == 100.0
        assert split.status == "paid"

    def test_float_share_snaps_exactly(self):
        """Paying the displayed amount of a 100/3 share settles it exactly."""
        share = 100.0 / 3
        split = apply_partial_payment(pending(share), paid_amount=share)

        assert split.status == "paid"
        assert split.paid_amount == split.share_amount

    def test_zero_payment_is_pending(self):
        split = apply_partial_payment(pending(100.0, paid=60.0), paid_amount=0)

        assert split.status == "pending"
        assert split.paid_amount == 0.0

    def test_lowering_payment_reopens_paid_split(self):
        paid = apply_status(pending(100.0), "paid")
        split = apply_partial_payment(paid, paid_amount=20)

        assert split.status == "pending"
        assert split.paid_amount == 20.0

    def test_share_correction_below_paid_settles(self):
        """Shrinking the share under what was paid snaps paid to the new share."""
        split = apply_partial_payment(pending(100.0, paid=60.0), share_amount=50)

        assert split.share_amount == 50.0
        assert split.paid_amount == 50.0
        assert split.status == "paid"

    def test_share_correction_above_paid_reopens(self):
        paid = apply_status(pending(100.0), "paid")
        split = apply_partial_payment(paid, share_amount=150)

        assert split.share_amount == 150.0
        assert split.paid_amount == 100.0
        assert split.status == "pending"

    def test_share_and_payment_together_clamp_to_new_share(self):
        split = apply_partial_payment(pending(100.0), paid_amount=90, share_amount=80)

        assert split.share_amount == 80.0
        assert split.paid_amount == 80.0
        assert split.status == "paid"

    def test_numeric_strings_accepted(self):
        split = apply_partial_payment(pending(100.0), paid_amount="25.5")
        assert split.paid_amount == 25.5

    def test_requires_an_amount(self):
        with pytest.raises(ValidationError):
            apply_partial_payment(pending(100.0))

    def test_negative_payment_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            apply_partial_payment(pending(100.0), paid_amount=-1)
        assert exc_info.value.field == "paid_amount"

    def test_zero_share_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            apply_partial_payment(pending(100.0), share_amount=0)
        assert exc_info.value.field == "share_amount"


class TestCoerceAmount:
    """Tests for amount input coercion."""

    @pytest.mark.parametrize("value", ["abc", None, True, float("nan"), float("inf")])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            coerce_amount(value, "paid_amount")

    def test_accepts_int(self):
        assert coerce_amount(5, "paid_amount") == 5.0


class TestSettlement:
    """Tests for archival derivation helpers."""

    def test_all_paid_is_settled(self):
        splits = [
            SplitDetail(user_id="a", share_amount=0, status="paid"),
            SplitDetail(user_id="b", share_amount=10, paid_amount=10, status="paid"),
        ]
        assert is_fully_settled(splits)

    def test_replace_split_swaps_one_entry(self):
        splits = [
            SplitDetail(user_id="a", share_amount=0, status="paid"),
            SplitDetail(user_id="b", share_amount=10),
        ]
        updated = apply_status(splits[1], "paid")
        result = replace_split(splits, updated)

        assert result[0] is splits[0]
        assert result[1].status == "paid"
        assert is_fully_settled(result)

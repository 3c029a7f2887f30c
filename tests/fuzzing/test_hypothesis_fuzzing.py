"""
Property-based tests for the stock ledger.

Random sequences of adjustments are applied to one item.  Whatever the
sequence, the stored quantity must equal the starting quantity plus the
deltas that were accepted, it must never be negative, and the audit trail
must hold one entry per accepted delta.

Price parsing is fuzzed separately: any non-negative Decimal survives a
round trip through its formatted string.
"""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy import select

from inventory_kernel.domain.reasons import ADJUSTMENT_REASONS
from inventory_kernel.domain.values import parse_price
from inventory_kernel.exceptions import InvalidPriceError, NegativeStockRejectedError
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.selectors.item_selector import load_item

deltas = st.integers(min_value=-15, max_value=15).filter(lambda d: d != 0)


class TestLedgerInvariants:
    @settings(
        max_examples=30,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    )
    @given(
        start=st.integers(min_value=0, max_value=20),
        sequence=st.lists(st.tuples(deltas, st.sampled_from(ADJUSTMENT_REASONS)), max_size=12),
    )
    def test_quantity_matches_accepted_deltas(
        self, session, ledger, make_item, test_actor_id, start, sequence
    ):
        ref = make_item(quantity=start)
        expected = start
        accepted = []

        for delta, reason in sequence:
            try:
                ledger.adjust_stock(ref, delta, reason, test_actor_id)
            except NegativeStockRejectedError:
                assert expected + delta < 0
                continue
            expected += delta
            accepted.append(delta)
            assert expected >= 0

        item = load_item(session, ref)
        assert item.quantity_on_hand == expected
        recorded = session.execute(
            select(AuditEntry.quantity_delta)
            .where(
                AuditEntry.item_id == item.id,
                AuditEntry.action == AuditAction.ADJUST_STOCK.value,
            )
            .order_by(AuditEntry.id)
        ).scalars().all()
        assert recorded == accepted


class TestPriceParsing:
    @given(
        st.decimals(
            min_value=Decimal("0"),
            max_value=Decimal("9999999999.99"),
            places=2,
            allow_nan=False,
            allow_infinity=False,
        )
    )
    def test_formatted_price_parses_back(self, amount):
        assert parse_price(f"${amount:,.2f}") == amount

    @given(st.decimals(max_value=Decimal("-0.01"), allow_nan=False, allow_infinity=False))
    def test_negative_always_rejected(self, amount):
        with pytest.raises(InvalidPriceError):
            parse_price(str(amount))

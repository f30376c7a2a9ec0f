"""
Hypothesis-based property tests for inventory and eligibility.

Properties:
- For any sequence of claims and unclaims, the stored counters equal a
  trivial in-memory model and never leave 0..total_quantity.
- resolve_eligible returns a subset of the roster, in roster order,
  containing only active recipients and (when targeted) only targets.
- Row normalization is idempotent.
"""

from datetime import date
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from goodies_ingestion.domain.rows import normalize_row
from goodies_kernel.domain.dtos import (
    ClaimVia,
    DistributionInfo,
    EmployeeInfo,
    EmployeeRole,
    EmployeeStatus,
)
from goodies_kernel.domain.eligibility import resolve_eligible
from goodies_kernel.exceptions import AlreadyClaimedError, OutOfStockError

DB_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)

operations = st.lists(
    st.tuples(st.sampled_from(["claim", "unclaim"]), st.integers(min_value=0, max_value=4)),
    max_size=20,
)


class TestCountersMatchModel:

    @DB_SETTINGS
    @given(quantity=st.integers(min_value=0, max_value=4), ops=operations)
    def test_claim_unclaim_sequence(
        self, ledger, manager, create_distribution, roster, test_actor_id, quantity, ops
    ):
        # Fresh distribution per example; the roster is shared.
        distribution = create_distribution(total_quantity=quantity)
        holders: dict[int, object] = {}

        for op, idx in ops:
            employee = roster[idx]
            if op == "claim":
                try:
                    claim = ledger.claim(
                        distribution.id, employee.id, ClaimVia.SELF_SERVICE, employee.id
                    )
                except AlreadyClaimedError:
                    assert idx in holders
                except OutOfStockError:
                    assert len(holders) == quantity
                else:
                    assert idx not in holders
                    holders[idx] = claim.id
            elif idx in holders:
                ledger.unclaim(holders.pop(idx), test_actor_id)

            current = manager.get(distribution.id)
            assert 0 <= current.remaining_count <= quantity
            assert current.claimed_count == len(holders)
            assert current.remaining_count == quantity - len(holders)

        assert {c.user_id for c in ledger.list_claims(distribution.id)} == {
            roster[i].id for i in holders
        }


employees = st.builds(
    EmployeeInfo,
    id=st.uuids(),
    employee_code=st.text(min_size=1, max_size=8),
    name=st.text(max_size=8),
    role=st.sampled_from(list(EmployeeRole)),
    status=st.sampled_from(list(EmployeeStatus)),
)


class TestEligibilityProperties:

    @settings(max_examples=200)
    @given(roster=st.lists(employees, max_size=12), data=st.data())
    def test_subset_in_roster_order(self, roster, data):
        is_for_all = data.draw(st.booleans())
        ids = [e.id for e in roster]
        targets = data.draw(st.lists(st.sampled_from(ids), unique=True)) if ids else []
        distribution = DistributionInfo(
            id=uuid4(),
            goodies_type="Mug",
            office_id=uuid4(),
            distribution_date=date(2024, 11, 1),
            total_quantity=1,
            claimed_count=0,
            remaining_count=1,
            is_for_all_employees=is_for_all,
            target_employee_ids=tuple(targets),
            distributed_by_id=uuid4(),
        )

        eligible = resolve_eligible(distribution, roster)

        assert all(e.can_receive_goodies for e in eligible.employees)
        assert len(set(eligible.ids)) == len(eligible.ids)
        positions = [ids.index(i) for i in eligible.ids]
        assert positions == sorted(positions)
        if not is_for_all:
            assert set(eligible.ids) <= set(targets)
        else:
            assert set(eligible.ids) == {e.id for e in roster if e.can_receive_goodies}


class TestRowNormalization:

    @settings(max_examples=200)
    @given(
        row=st.dictionaries(
            st.text(max_size=12),
            st.one_of(st.none(), st.text(max_size=12), st.integers(), st.floats(allow_nan=False)),
            max_size=6,
        )
    )
    def test_idempotent(self, row):
        once = normalize_row(row)
        assert normalize_row(once) == once
        assert all(isinstance(v, str) for v in once.values())

from __future__ import annotations
from decimal import Decimal

import pytest

from models import ExpenseDraft, Member, SplitStrategy


@pytest.fixture
def roster():
    return [
        Member("a", "Asha", income=Decimal("60000"), weight=Decimal("2")),
        Member("b", "Ben", income=Decimal("30000")),
        Member("c", "Chen"),
        Member("d", "Dana", income=Decimal("45000")),
    ]


@pytest.fixture
def make_draft():
    def _make(**overrides):
        values = dict(
            title="Team dinner",
            amount=Decimal("100"),
            category="food",
            strategy=SplitStrategy.EQUAL,
            selected_member_ids=("a", "b", "c"),
        )
        values.update(overrides)
        return ExpenseDraft(**values)
    return _make

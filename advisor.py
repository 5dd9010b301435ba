"""
Non-blocking business heuristics for SplitCheck
"""
from __future__ import annotations
from decimal import Decimal
from typing import List, Optional, Sequence

from computations import member_income, members_without_income
from config import EngineConfig
from models import ExpenseDraft, Member, SplitStrategy, ValidationResult
from utils import to_decimal


def advise(
    draft: ExpenseDraft,
    strategy: Optional[SplitStrategy],
    amount: Decimal,
    active: Sequence[Member],
    config: EngineConfig,
    result: ValidationResult,
) -> None:
    """Adds warnings and suggestions only, never errors"""
    category = draft.category.strip().lower() if isinstance(draft.category, str) else ""

    if amount > config.single_member_large_amount and len(active) == 1:
        result.warnings.append("Large expense for single person. Consider verifying this is correct.")

    if strategy is SplitStrategy.EQUAL and len(active) > config.equal_split_group_size:
        result.suggestions.append(
            "For large groups, consider using percentage or weighted splits for more fairness."
        )

    if strategy is not None and strategy.is_income_based:
        missing = members_without_income(active)
        if missing:
            names = ", ".join(m.name for m in missing)
            result.suggestions.append(f"Add income details for {names} to enable income-based splitting.")

    if category == "food" and amount > config.food_amount_threshold:
        result.suggestions.append(
            "High food expense. Consider if this includes multiple meals or special occasion."
        )

    if category == "transportation" and len(active) > config.transportation_group_size:
        result.suggestions.append(
            "Large group for transportation. Verify all members actually used this transport."
        )


def suggest_split_methods(draft: ExpenseDraft, roster: Sequence[Member]) -> List[SplitStrategy]:
    """Split strategies that fit this draft, most basic first"""
    amount = to_decimal(draft.amount)
    if amount is None or amount <= 0 or not draft.selected_member_ids:
        return [SplitStrategy.EQUAL]

    wanted = set(draft.selected_member_ids)
    selected = [m for m in roster if m.id in wanted]
    incomes = [i for i in (member_income(m) for m in selected) if i is not None and i > 0]

    out = [SplitStrategy.EQUAL]
    if selected and len(incomes) == len(selected):
        out.append(SplitStrategy.INCOME_PROPORTIONAL)
        if len(incomes) > 1 and max(incomes) / min(incomes) > 2:
            out.append(SplitStrategy.INCOME_PROGRESSIVE)

    if amount > 1000 and len(selected) <= 5:
        out.append(SplitStrategy.CUSTOM)
        out.append(SplitStrategy.PERCENTAGE)

    category = draft.category.strip().lower() if isinstance(draft.category, str) else ""
    if category == "food" and len(selected) > 3:
        out.append(SplitStrategy.SHARES)
    return out

"""
Validation entry points for SplitCheck.

validate_expense runs every check on a draft and, when the split can be
computed, returns the resolved per-member shares. quick_validate checks a
single form field for as-you-type feedback.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Sequence

from advisor import advise
from computations import SplitResolutionError, resolve
from config import DEFAULT_CONFIG, EngineConfig
from models import ExpenseDraft, Member, QuickCheck, ValidationResult
from utils import quantize_money, to_decimal
from validators import (
    validate_amount,
    validate_basic_fields,
    validate_membership,
    validate_payers,
    validate_resolved_splits,
    validate_split_parameters,
)

logger = logging.getLogger(__name__)


def validate_expense(
    draft: ExpenseDraft,
    roster: Sequence[Member],
    config: Optional[EngineConfig] = None,
) -> ValidationResult:
    """
    Validate a draft against the roster.
    All findings are collected rather than stopping at the first error. The
    split is only resolved once the amount and the member selection are
    sound, and the advisor only runs in that case too.
    """
    config = config or DEFAULT_CONFIG
    result = ValidationResult()

    strategy = validate_basic_fields(draft, config, result)
    amount = validate_amount(draft.amount, config, result)
    active = validate_membership(draft, roster, config, result)

    if draft.multiple_payers or draft.payers is not None:
        parsed = to_decimal(draft.amount)
        validate_payers(
            draft, quantize_money(parsed) if parsed is not None else None, roster, config, result
        )

    if amount is not None and active is not None:
        if strategy is not None and validate_split_parameters(
            draft, strategy, amount, active, roster, config, result
        ):
            try:
                resolution = resolve(strategy, amount, active, draft.splits, config)
            except SplitResolutionError as ex:
                result.errors.append(str(ex))
            else:
                result.warnings.extend(resolution.warnings)
                n_errors = len(result.errors)
                validate_resolved_splits(resolution, amount, active, result)
                if len(result.errors) == n_errors:
                    result.resolved_splits = list(resolution.splits)
                    result.applied_strategy = resolution.strategy
        advise(draft, strategy, amount, active, config, result)

    result.is_valid = not result.errors
    logger.info(
        "validated expense %r: valid=%s errors=%d warnings=%d suggestions=%d",
        draft.title, result.is_valid, len(result.errors),
        len(result.warnings), len(result.suggestions),
    )
    return result


def quick_validate(field: str, value: Any, config: Optional[EngineConfig] = None) -> QuickCheck:
    """Check one field in isolation: title, amount or percentage"""
    config = config or DEFAULT_CONFIG

    if field == "title":
        title = value.strip() if isinstance(value, str) else ""
        if not title:
            return QuickCheck(False, "Title is required")
        if len(title) < config.min_title_length:
            return QuickCheck(False, "Title too short")
        if len(title) > config.max_title_length:
            return QuickCheck(False, "Title too long")

    elif field == "amount":
        amount = to_decimal(value)
        if amount is None:
            return QuickCheck(False, "Invalid amount")
        if amount <= 0:
            return QuickCheck(False, "Amount must be positive")
        if amount < config.min_amount:
            return QuickCheck(False, "Amount too small")
        if amount > config.max_amount:
            return QuickCheck(False, "Amount too large")

    elif field == "percentage":
        pct = to_decimal(value)
        if pct is None:
            return QuickCheck(False, "Invalid percentage")
        if pct < 0 or pct > 100:
            return QuickCheck(False, "Percentage must be 0-100%")

    return QuickCheck(True)

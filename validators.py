"""
Validators for SplitCheck.

Each validator appends findings to a ValidationResult and returns what later
stages need (parsed strategy, quantized amount, active members). None of
them decide is_valid; that is left to engine.validate_expense.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from computations import Resolution, member_weight
from config import EngineConfig
from models import ExpenseDraft, Member, SplitEntry, SplitStrategy, ValidationResult
from utils import format_money, format_number, fraction_digits, quantize_money, round_half_up, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _names(ids: Sequence[str], roster_by_id: Dict[str, Member]) -> str:
    return ", ".join(roster_by_id[i].name if i in roster_by_id else i for i in ids)


def _unique(ids: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


# ---------- Basic fields ----------

def validate_basic_fields(
    draft: ExpenseDraft, config: EngineConfig, result: ValidationResult
) -> Optional[SplitStrategy]:
    """Title, category and split strategy; returns the parsed strategy"""
    title = draft.title.strip() if isinstance(draft.title, str) else ""
    if not title:
        result.errors.append("Expense title is required")
    else:
        if len(title) < config.min_title_length:
            result.errors.append(f"Title must be at least {config.min_title_length} characters long")
        if len(title) > config.max_title_length:
            result.errors.append(f"Title cannot exceed {config.max_title_length} characters")
        if len(title) < 5:
            result.suggestions.append(
                "Consider adding more detail to the expense title for better tracking"
            )
        if not any(c.isalpha() for c in title):
            result.warnings.append("Title should contain descriptive text")

    if not (isinstance(draft.category, str) and draft.category.strip()):
        result.errors.append("Category is required")

    strategy = SplitStrategy.parse(draft.strategy)
    if draft.strategy is None or draft.strategy == "":
        result.errors.append("Split type is required")
    elif strategy is None:
        result.errors.append(f"Unknown split type: {draft.strategy!r}")
    return strategy


# ---------- Amount ----------

def validate_amount(raw, config: EngineConfig, result: ValidationResult) -> Optional[Decimal]:
    """Returns the amount rounded to the currency scale, or None when invalid"""
    amount = to_decimal(raw)
    if amount is None or amount <= 0:
        result.errors.append("Amount is required and must be a valid positive number")
        return None

    ok = True
    if amount < config.min_amount:
        result.errors.append(f"Amount must be at least {format_money(config.min_amount)}")
        ok = False
    if amount > config.max_amount:
        result.errors.append(f"Amount cannot exceed {format_money(config.max_amount)}")
        ok = False

    if amount > config.large_amount_warning:
        result.warnings.append("This is a large expense. Please verify the amount is correct.")
    if amount < config.small_amount_suggestion:
        result.suggestions.append(
            "Consider if this small expense needs to be tracked separately or can be combined with others."
        )
    if fraction_digits(amount) > 2:
        result.warnings.append(
            f"Amount will be rounded to 2 decimal places ({format_money(amount)}) for calculations"
        )
    return quantize_money(amount) if ok else None


# ---------- Membership ----------

def validate_membership(
    draft: ExpenseDraft,
    roster: Sequence[Member],
    config: EngineConfig,
    result: ValidationResult,
) -> Optional[List[Member]]:
    """Returns the active members (selected minus excluded) or None"""
    selected = _unique(draft.selected_member_ids or ())
    if not selected:
        result.errors.append("At least one member must be selected to split the expense")
        return None

    roster_by_id = {m.id: m for m in roster}
    n_errors = len(result.errors)

    unknown = [i for i in selected if i not in roster_by_id]
    if unknown:
        result.errors.append(f"Some selected members are not valid group members: {', '.join(unknown)}")

    excluded = _unique(draft.excluded_member_ids or ())
    if excluded:
        unknown_ex = [i for i in excluded if i not in roster_by_id]
        if unknown_ex:
            result.errors.append(
                f"Some excluded members are not valid group members: {', '.join(unknown_ex)}"
            )
        not_selected = [i for i in excluded if i in roster_by_id and i not in selected]
        if not_selected:
            result.errors.append(
                f"Excluded members must also be selected: {_names(not_selected, roster_by_id)}"
            )
        if set(selected) <= set(excluded):
            result.errors.append("Cannot exclude all selected members")

    if len(selected) == 1:
        result.warnings.append(
            "Only one member selected. Consider if this should be a personal expense instead."
        )
    if len(selected) > config.large_group_size:
        result.warnings.append(
            "Large number of members selected. This might make expense management complex."
        )

    if len(result.errors) > n_errors:
        return None
    excluded_set = set(excluded)
    return [roster_by_id[i] for i in selected if i not in excluded_set]


# ---------- Payers ----------

def validate_payers(
    draft: ExpenseDraft,
    amount: Optional[Decimal],
    roster: Sequence[Member],
    config: EngineConfig,
    result: ValidationResult,
) -> None:
    """
    Multi-payer breakdown. amount is the expense total when it parsed as a
    number (even if out of bounds), so a mismatch is always reported.
    """
    payers = draft.payers or ()
    if not payers:
        result.errors.append("At least one payer is required when multiple payers option is enabled")
        return

    roster_ids = {m.id for m in roster}
    total = Decimal("0")
    for index, payer in enumerate(payers, start=1):
        if not payer.member_id:
            result.errors.append(f"Payer {index} must have a valid member selected")
        elif payer.member_id not in roster_ids:
            result.errors.append(f"Payer {index} ({payer.member_id}) is not a valid group member")

        paid = to_decimal(payer.amount)
        if paid is None or paid <= 0:
            result.errors.append(f"Payer {index} must have a valid amount greater than 0")
            continue
        total += paid
        if amount is not None and paid > amount:
            result.warnings.append(f"Payer {index} is paying more than the total expense amount")

    ids = [p.member_id for p in payers if p.member_id]
    if len(ids) != len(set(ids)):
        result.errors.append("Each member can only be added as a payer once")

    if amount is not None and abs(total - amount) > config.tolerance:
        result.errors.append(
            f"Total paid amounts ({format_money(total)}) must equal expense amount ({format_money(amount)})"
        )


# ---------- Split consistency ----------

def _check_percentages(active, entries, config, result) -> None:
    total = Decimal("0")
    for m in active:
        entry = entries.get(m.id)
        pct = to_decimal(entry.percentage) if entry is not None else None
        if pct is None:
            result.errors.append(f"No percentage given for {m.name}")
            continue
        if pct < 0 or pct > HUNDRED:
            result.errors.append(f"{m.name} must have a valid percentage (0-100%)")
        total += pct
    if abs(HUNDRED - total) > config.tolerance:
        shown = round_half_up(total, Decimal("0.1"))
        result.errors.append(f"Split percentages must sum to 100% (got {shown}%)")


def _check_custom(active, entries, amount, config, result) -> None:
    total = Decimal("0")
    for m in active:
        entry = entries.get(m.id)
        value = to_decimal(entry.amount) if entry is not None else Decimal("0")
        if value is None:
            result.errors.append(f"{m.name} must have a valid amount")
            continue
        if value < 0:
            result.errors.append(f"{m.name} cannot have a negative amount")
        if value > amount:
            result.warnings.append(f"{m.name} is assigned more than the total expense amount")
        total += quantize_money(value)
    if abs(total - amount) > config.tolerance:
        result.errors.append(
            f"Custom split amounts must equal the expense total ({format_money(total)} ≠ {format_money(amount)})"
        )


def _check_shares(active, entries, config, result) -> None:
    for m in active:
        entry = entries.get(m.id)
        shares = to_decimal(entry.shares) if entry is not None else None
        if shares is None:
            result.errors.append(f"No shares given for {m.name}")
        elif shares <= 0:
            result.errors.append(f"{m.name} must have valid shares greater than 0")
        elif shares > config.max_shares:
            result.warnings.append(f"{m.name} has an unusually high number of shares ({format_number(shares)})")


def _check_weights(active, entries, config, result) -> None:
    for m in active:
        weight = member_weight(m, entries)
        if weight is None or weight <= 0:
            result.errors.append(f"{m.name} must have valid weight greater than 0")
        elif weight > config.max_weight:
            result.warnings.append(f"{m.name} has an unusually high weight value ({format_number(weight)})")


def _check_adjustments(active, entries, config, result) -> None:
    net = Decimal("0")
    for m in active:
        entry = entries.get(m.id)
        if entry is None or entry.adjustment is None:
            continue
        adj = to_decimal(entry.adjustment)
        if adj is None:
            result.errors.append(f"Adjustment for {m.name} must be a number")
            continue
        net += quantize_money(adj)
    if abs(net) > config.tolerance:
        result.errors.append(
            f"Adjusted amounts must equal expense total. Difference: {format_money(abs(net))}"
        )


def validate_split_parameters(
    draft: ExpenseDraft,
    strategy: SplitStrategy,
    amount: Decimal,
    active: Sequence[Member],
    roster: Sequence[Member],
    config: EngineConfig,
    result: ValidationResult,
) -> bool:
    """
    Strategy parameters carried by draft.splits, checked before resolution.
    Returns True when nothing blocks resolving the split.
    """
    n_errors = len(result.errors)
    splits: Sequence[SplitEntry] = draft.splits or ()
    active_ids = {m.id for m in active}
    excluded = set(draft.excluded_member_ids or ())
    roster_by_id = {m.id: m for m in roster}

    entries: Dict[str, SplitEntry] = {}
    duplicates: List[str] = []
    strangers: List[str] = []
    ignored: List[str] = []
    for s in splits:
        if s.member_id in entries:
            duplicates.append(s.member_id)
            continue
        if s.member_id in active_ids:
            entries[s.member_id] = s
        elif s.member_id in excluded:
            ignored.append(s.member_id)
        else:
            strangers.append(s.member_id)

    if duplicates:
        result.errors.append(
            f"Each member can only have one split entry: {_names(_unique(duplicates), roster_by_id)}"
        )
    if strangers:
        result.errors.append(
            f"Split entries refer to members outside this expense: {_names(strangers, roster_by_id)}"
        )
    if ignored:
        result.warnings.append(
            f"Split entries for excluded members are ignored: {_names(ignored, roster_by_id)}"
        )

    if strategy is SplitStrategy.PERCENTAGE:
        _check_percentages(active, entries, config, result)
    elif strategy is SplitStrategy.CUSTOM:
        _check_custom(active, entries, amount, config, result)
    elif strategy is SplitStrategy.SHARES:
        _check_shares(active, entries, config, result)
    elif strategy is SplitStrategy.WEIGHTED:
        _check_weights(active, entries, config, result)
    elif strategy is SplitStrategy.ADJUSTMENT:
        _check_adjustments(active, entries, config, result)

    if strategy is not SplitStrategy.CUSTOM and entries:
        submitted = [to_decimal(s.amount) for s in entries.values()]
        if all(v is not None for v in submitted) and any(submitted):
            submitted_total = sum(submitted, Decimal("0"))
            if abs(submitted_total - amount) > config.tolerance:
                result.warnings.append(
                    f"Submitted split amounts ({format_money(submitted_total)}) differ from the "
                    f"expense total ({format_money(amount)}); recomputed shares will be used"
                )

    return len(result.errors) == n_errors


def validate_resolved_splits(
    resolution: Resolution,
    amount: Decimal,
    active: Sequence[Member],
    result: ValidationResult,
) -> None:
    """Resolved shares must cover every active member and add up exactly"""
    by_id = {m.id: m for m in active}
    ids = [s.member_id for s in resolution.splits]
    if sorted(ids) != sorted(by_id):
        result.errors.append("Resolved split does not cover every active member exactly once")

    for s in resolution.splits:
        if s.amount < 0:
            name = by_id[s.member_id].name if s.member_id in by_id else s.member_id
            if resolution.strategy is SplitStrategy.ADJUSTMENT:
                result.errors.append(f"{name}'s adjustment results in a negative amount")
            else:
                result.errors.append(f"{name} cannot have a negative amount")

    total = sum((s.amount for s in resolution.splits), Decimal("0"))
    if total != amount:
        logger.warning("resolved split total %s != amount %s", total, amount)
        result.errors.append(
            f"Resolved shares ({format_money(total)}) do not add up to the expense total ({format_money(amount)})"
        )

"""
Split computations for SplitCheck: one resolver per split strategy
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from decimal import Decimal, DecimalException, ROUND_HALF_UP, localcontext
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import DEFAULT_CONFIG, EngineConfig
from models import Member, SplitEntry, SplitStrategy
from utils import CENT, format_money, quantize_money, to_decimal

logger = logging.getLogger(__name__)


class SplitResolutionError(ValueError):
    """Inputs that no split can be computed from"""


@dataclass(frozen=True)
class Resolution:
    """Computed shares plus the strategy that produced them"""
    strategy: SplitStrategy
    splits: Tuple[SplitEntry, ...]
    warnings: Tuple[str, ...] = ()


def order_members(members: Sequence[Member]) -> List[Member]:
    """Stable member-id order used for every tie-break"""
    return sorted(members, key=lambda m: m.id)


def build_entry_map(splits: Optional[Sequence[SplitEntry]]) -> Dict[str, SplitEntry]:
    """member id -> first split entry for that member"""
    out: Dict[str, SplitEntry] = {}
    for s in splits or ():
        out.setdefault(s.member_id, s)
    return out


def _integer_weights(weights: Sequence[Decimal], precision: int) -> List[int]:
    """
    Scale decimal weights to integers with the same ratios, keeping
    precision significant digits of the largest weight
    """
    top = max(weights)
    if top <= 0:
        return [0] * len(weights)
    shift = precision - 1 - top.adjusted()
    with localcontext() as ctx:
        ctx.prec = precision + 2
        return [int(w.scaleb(shift).to_integral_value(rounding=ROUND_HALF_UP)) for w in weights]


def apportion(
    total: Decimal, weights: Sequence[Decimal], precision: int = DEFAULT_CONFIG.precision
) -> List[Decimal]:
    """
    Split total (a cent amount) in proportion to weights, exactly.
    Each quota is truncated to whole cents; the leftover cents go one each to
    the largest discarded fractions, ties to the earlier position. Result sums
    to total and matches per-member round-half-up whenever that reconciles.
    Weights are compared to precision significant digits of the largest one.
    """
    if not weights:
        raise SplitResolutionError("No members to split between")
    if any(w < 0 for w in weights):
        raise SplitResolutionError("Split weights cannot be negative")
    units = int((quantize_money(total) / CENT).to_integral_value())
    ints = _integer_weights(weights, precision)
    weight_sum = sum(ints)
    if weight_sum <= 0:
        raise SplitResolutionError("Split weights must add up to more than zero")

    cents: List[int] = []
    remainders: List[int] = []
    for w in ints:
        q, r = divmod(units * w, weight_sum)
        cents.append(q)
        remainders.append(r)

    leftover = units - sum(cents)
    ranked = sorted(range(len(ints)), key=lambda i: (-remainders[i], i))
    for i in ranked[:leftover]:
        cents[i] += 1
    return [Decimal(c) * CENT for c in cents]


def absorb_residual(total: Decimal, amounts: List[Decimal]) -> List[Decimal]:
    """Push total - sum(amounts) onto the largest amount (earliest on ties)"""
    residual = total - sum(amounts, Decimal("0"))
    if residual == 0 or not amounts:
        return amounts
    target = max(range(len(amounts)), key=lambda i: (amounts[i], -i))
    out = list(amounts)
    out[target] += residual
    return out


def _require(entries: Dict[str, SplitEntry], m: Member, attr: str, label: str) -> Decimal:
    entry = entries.get(m.id)
    value = to_decimal(getattr(entry, attr)) if entry is not None else None
    if value is None:
        raise SplitResolutionError(f"No {label} given for {m.name}")
    return value


def _resolve_equal(amount, members, entries, config) -> Resolution:
    amounts = apportion(amount, [Decimal(1)] * len(members), config.precision)
    return Resolution(
        SplitStrategy.EQUAL,
        tuple(SplitEntry(m.id, a) for m, a in zip(members, amounts)),
    )


def _resolve_percentage(amount, members, entries, config) -> Resolution:
    pcts = [_require(entries, m, "percentage", "percentage") for m in members]
    amounts = apportion(amount, pcts, config.precision)
    return Resolution(
        SplitStrategy.PERCENTAGE,
        tuple(SplitEntry(m.id, a, percentage=p) for m, a, p in zip(members, amounts, pcts)),
    )


def _resolve_custom(amount, members, entries, config) -> Resolution:
    amounts = []
    for m in members:
        entry = entries.get(m.id)
        value = to_decimal(entry.amount) if entry is not None else Decimal("0")
        if value is None:
            raise SplitResolutionError(f"Custom amount for {m.name} is not a number")
        amounts.append(quantize_money(value))
    total = sum(amounts, Decimal("0"))
    if abs(total - amount) > config.tolerance:
        raise SplitResolutionError(
            f"Custom split amounts ({format_money(total)}) must equal expense total ({format_money(amount)})"
        )
    amounts = absorb_residual(amount, amounts)
    return Resolution(
        SplitStrategy.CUSTOM,
        tuple(SplitEntry(m.id, a) for m, a in zip(members, amounts)),
    )


def _resolve_shares(amount, members, entries, config) -> Resolution:
    shares = [_require(entries, m, "shares", "shares") for m in members]
    if any(s <= 0 for s in shares):
        raise SplitResolutionError("Shares must be greater than 0")
    amounts = apportion(amount, shares, config.precision)
    return Resolution(
        SplitStrategy.SHARES,
        tuple(SplitEntry(m.id, a, shares=s) for m, a, s in zip(members, amounts, shares)),
    )


def member_weight(m: Member, entries: Dict[str, SplitEntry]) -> Optional[Decimal]:
    """Weight from the split entry, else the roster, else 1"""
    entry = entries.get(m.id)
    if entry is not None and entry.weight is not None:
        return to_decimal(entry.weight)
    if m.weight is not None:
        return to_decimal(m.weight)
    return Decimal(1)


def _resolve_weighted(amount, members, entries, config) -> Resolution:
    weights = [member_weight(m, entries) for m in members]
    if any(w is None or w <= 0 for w in weights):
        raise SplitResolutionError("Weights must be greater than 0")
    amounts = apportion(amount, weights, config.precision)
    return Resolution(
        SplitStrategy.WEIGHTED,
        tuple(SplitEntry(m.id, a, weight=w) for m, a, w in zip(members, amounts, weights)),
    )


def member_income(m: Member) -> Optional[Decimal]:
    """Roster income as Decimal; None when missing or not a number"""
    return to_decimal(m.income)


def members_without_income(members: Sequence[Member]) -> List[Member]:
    out = []
    for m in members:
        income = member_income(m)
        if income is None or income <= 0:
            out.append(m)
    return out


def _income_fallback(strategy, amount, members, entries, config) -> Optional[Resolution]:
    missing = members_without_income(members)
    if not missing:
        return None
    names = ", ".join(m.name for m in missing)
    logger.debug("%s split falling back to equal; no income for %s", strategy.value, names)
    equal = _resolve_equal(amount, members, entries, config)
    warning = (
        f"Income data missing for {names}; {strategy.value} split fell back to an equal split"
    )
    return Resolution(SplitStrategy.EQUAL, equal.splits, (warning,))


def _resolve_income_proportional(amount, members, entries, config) -> Resolution:
    fallback = _income_fallback(SplitStrategy.INCOME_PROPORTIONAL, amount, members, entries, config)
    if fallback is not None:
        return fallback
    amounts = apportion(amount, [member_income(m) for m in members], config.precision)
    return Resolution(
        SplitStrategy.INCOME_PROPORTIONAL,
        tuple(SplitEntry(m.id, a) for m, a in zip(members, amounts)),
    )


def progressive_weights(incomes: Sequence[Decimal], exponent: Decimal, precision: int) -> List[Decimal]:
    """
    income ** exponent, computed on incomes relative to the mean so the
    weights stay near 1. exponent > 1 makes the burden grow faster than income.
    """
    with localcontext() as ctx:
        ctx.prec = precision
        mean = sum(incomes, Decimal("0")) / len(incomes)
        return [(i / mean) ** exponent for i in incomes]


def _resolve_income_progressive(amount, members, entries, config) -> Resolution:
    fallback = _income_fallback(SplitStrategy.INCOME_PROGRESSIVE, amount, members, entries, config)
    if fallback is not None:
        return fallback
    incomes = [member_income(m) for m in members]
    weights = progressive_weights(incomes, config.progressive_exponent, config.precision)
    amounts = apportion(amount, weights, config.precision)
    return Resolution(
        SplitStrategy.INCOME_PROGRESSIVE,
        tuple(SplitEntry(m.id, a) for m, a in zip(members, amounts)),
    )


def _resolve_adjustment(amount, members, entries, config) -> Resolution:
    base = apportion(amount, [Decimal(1)] * len(members), config.precision)
    adjustments = []
    for m in members:
        entry = entries.get(m.id)
        raw = entry.adjustment if entry is not None else None
        value = Decimal("0") if raw is None else to_decimal(raw)
        if value is None:
            raise SplitResolutionError(f"Adjustment for {m.name} is not a number")
        adjustments.append(quantize_money(value))
    net = sum(adjustments, Decimal("0"))
    if abs(net) > config.tolerance:
        raise SplitResolutionError(
            f"Adjusted amounts must equal expense total. Difference: {format_money(abs(net))}"
        )
    finals = absorb_residual(amount, [b + a for b, a in zip(base, adjustments)])
    out = []
    for m, final, adj in zip(members, finals, adjustments):
        entry = entries.get(m.id)
        out.append(SplitEntry(
            m.id, final, adjustment=adj,
            adjustment_reason=entry.adjustment_reason if entry is not None else "",
        ))
    return Resolution(SplitStrategy.ADJUSTMENT, tuple(out))


Resolver = Callable[[Decimal, List[Member], Dict[str, SplitEntry], EngineConfig], Resolution]

RESOLVERS: Dict[SplitStrategy, Resolver] = {
    SplitStrategy.EQUAL: _resolve_equal,
    SplitStrategy.PERCENTAGE: _resolve_percentage,
    SplitStrategy.CUSTOM: _resolve_custom,
    SplitStrategy.SHARES: _resolve_shares,
    SplitStrategy.WEIGHTED: _resolve_weighted,
    SplitStrategy.INCOME_PROPORTIONAL: _resolve_income_proportional,
    SplitStrategy.INCOME_PROGRESSIVE: _resolve_income_progressive,
    SplitStrategy.ADJUSTMENT: _resolve_adjustment,
}

_missing = set(SplitStrategy) - set(RESOLVERS)
if _missing:
    raise RuntimeError(f"No resolver for {sorted(s.value for s in _missing)}")


def resolve(
    strategy: SplitStrategy,
    amount: Decimal,
    active_members: Sequence[Member],
    splits: Optional[Sequence[SplitEntry]] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Resolution:
    """
    Compute per-member shares of amount for the active members.
    Members are processed in member-id order, so identical input always gives
    identical output. Raises SplitResolutionError when nothing can be computed.
    """
    if not active_members:
        raise SplitResolutionError("No members to split between")
    members = order_members(active_members)
    total = quantize_money(amount)
    try:
        resolution = RESOLVERS[strategy](total, members, build_entry_map(splits), config)
    except DecimalException as ex:
        logger.warning("%s split could not be computed: %r", strategy.value, ex)
        raise SplitResolutionError("Split could not be computed from the given values") from ex
    logger.debug(
        "resolved %s split of %s across %d members",
        resolution.strategy.value, total, len(members),
    )
    return resolution

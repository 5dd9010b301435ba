"""
Data models for SplitCheck
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple


class SplitStrategy(Enum):
    """How an expense total is divided among active members"""
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"
    SHARES = "shares"
    WEIGHTED = "weighted"
    INCOME_PROPORTIONAL = "income-proportional"
    INCOME_PROGRESSIVE = "income-progressive"
    ADJUSTMENT = "adjustment"

    @property
    def is_income_based(self) -> bool:
        return self in (SplitStrategy.INCOME_PROPORTIONAL, SplitStrategy.INCOME_PROGRESSIVE)

    @classmethod
    def parse(cls, value: Any) -> Optional["SplitStrategy"]:
        """Accept an enum member or a kebab/snake-case name; None if unknown"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        if key == "unequal":
            return cls.CUSTOM
        try:
            return cls(key)
        except ValueError:
            return None


@dataclass(frozen=True)
class Member:
    """Roster entry supplied by the group directory"""
    id: str
    name: str
    income: Optional[Decimal] = None
    weight: Optional[Decimal] = None


@dataclass(frozen=True)
class Payer:
    """Who paid how much upfront"""
    member_id: str
    amount: Any


@dataclass(frozen=True)
class SplitEntry:
    """Per-member share; which optional fields matter depends on the strategy"""
    member_id: str
    amount: Any = Decimal("0.00")
    percentage: Any = None
    shares: Any = None
    weight: Any = None
    adjustment: Any = None
    adjustment_reason: str = ""


@dataclass(frozen=True)
class ExpenseDraft:
    """One submission attempt; never modified by the engine"""
    title: str
    amount: Any
    category: str
    strategy: Any  # SplitStrategy or its name
    selected_member_ids: Tuple[str, ...] = ()
    excluded_member_ids: Tuple[str, ...] = ()
    multiple_payers: bool = False
    payers: Optional[Tuple[Payer, ...]] = None
    splits: Optional[Tuple[SplitEntry, ...]] = None


@dataclass
class ValidationResult:
    """Outcome of validate_expense"""
    is_valid: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    resolved_splits: Optional[List[SplitEntry]] = None
    applied_strategy: Optional[SplitStrategy] = None


@dataclass(frozen=True)
class QuickCheck:
    """Single-field check for as-you-type feedback"""
    is_valid: bool
    message: Optional[str] = None

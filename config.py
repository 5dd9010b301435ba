"""
Configuration and data loading for SplitCheck
"""
from __future__ import annotations
import json
from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from models import ExpenseDraft, Member, Payer, SplitEntry, SplitStrategy, ValidationResult
from utils import to_decimal


@dataclass(frozen=True)
class EngineConfig:
    """Bounds and thresholds passed into the validation engine"""
    min_amount: Decimal = Decimal("0.01")
    max_amount: Decimal = Decimal("10000000")
    tolerance: Decimal = Decimal("0.01")
    min_title_length: int = 2
    max_title_length: int = 100
    large_amount_warning: Decimal = Decimal("100000")
    small_amount_suggestion: Decimal = Decimal("10")
    large_group_size: int = 20
    single_member_large_amount: Decimal = Decimal("50000")
    equal_split_group_size: int = 10
    food_amount_threshold: Decimal = Decimal("5000")
    transportation_group_size: int = 8
    max_shares: Decimal = Decimal("1000")
    max_weight: Decimal = Decimal("100")
    progressive_exponent: Decimal = Decimal("1.3")
    precision: int = 28  # significant digits for intermediate arithmetic


DEFAULT_CONFIG = EngineConfig()


def config_to_dict(config: EngineConfig) -> dict:
    """Convert EngineConfig to a JSON-friendly dictionary"""
    return {
        k: (str(v) if isinstance(v, Decimal) else v)
        for k, v in asdict(config).items()
    }


def dict_to_config(d: dict) -> EngineConfig:
    """Build EngineConfig from a dictionary; unknown keys are ignored"""
    values = {}
    for f in fields(EngineConfig):
        if f.name not in d:
            continue
        raw = d[f.name]
        if isinstance(f.default, Decimal):
            value = to_decimal(raw)
            if value is None:
                raise ValueError(f"Config value {f.name!r} must be a number, got {raw!r}")
            values[f.name] = value
        else:
            values[f.name] = int(raw)
    return EngineConfig(**values)


def load_config(path: str) -> EngineConfig:
    """Load engine config from JSON file, defaults when the file is missing"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return DEFAULT_CONFIG
    return dict_to_config(data)


def save_config(config: EngineConfig, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config_to_dict(config), f, indent=2)


def member_from_dict(d: dict) -> Member:
    """Convert a roster record (JSON/CSV row) to Member"""
    return Member(
        id=str(d["id"]),
        name=str(d.get("name") or d["id"]),
        income=to_decimal(d.get("income")),
        weight=to_decimal(d.get("weight")),
    )


def roster_from_dicts(items: Iterable[dict]) -> List[Member]:
    return [member_from_dict(d) for d in items]


def load_roster(path: str) -> List[Member]:
    """Load roster from JSON file: either a list or {"members": [...]}"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("members", [])
    return roster_from_dicts(data)


def _split_entry_from_dict(d: dict) -> SplitEntry:
    return SplitEntry(
        member_id=str(d.get("member_id", d.get("memberId", ""))),
        amount=d.get("amount", d.get("customAmount", "0")),
        percentage=d.get("percentage"),
        shares=d.get("shares"),
        weight=d.get("weight"),
        adjustment=d.get("adjustment", d.get("adjustmentAmount")),
        adjustment_reason=str(d.get("adjustment_reason", d.get("adjustmentReason", "")) or ""),
    )


def draft_from_dict(d: dict) -> ExpenseDraft:
    """
    Convert a JSON expense draft to ExpenseDraft.
    Accepts snake_case keys and the camelCase keys used by the web client.
    """
    def pick(*keys: str, default: Any = None) -> Any:
        for k in keys:
            if k in d:
                return d[k]
        return default

    payers_raw = pick("payers")
    splits_raw = pick("splits")
    payers: Optional[tuple] = None
    if payers_raw is not None:
        payers = tuple(
            Payer(member_id=str(p.get("member_id", p.get("memberId", ""))), amount=p.get("amount"))
            for p in payers_raw
        )
    splits: Optional[tuple] = None
    if splits_raw is not None:
        splits = tuple(_split_entry_from_dict(s) for s in splits_raw)

    return ExpenseDraft(
        title=pick("title", default=""),
        amount=pick("amount"),
        category=pick("category", default=""),
        strategy=pick("strategy", "split_type", "splitType"),
        selected_member_ids=tuple(str(x) for x in pick("selected_member_ids", "selectedMembers", default=[])),
        excluded_member_ids=tuple(str(x) for x in pick("excluded_member_ids", "excludedMembers", default=[])),
        multiple_payers=bool(pick("multiple_payers", "multiplePayers", default=False)),
        payers=payers,
        splits=splits,
    )


def _json_value(v: Any) -> Any:
    if isinstance(v, Decimal):
        return str(v)
    if isinstance(v, SplitStrategy):
        return v.value
    return v


def result_to_dict(result: ValidationResult) -> dict:
    """Convert ValidationResult to a JSON-friendly dictionary"""
    splits = None
    if result.resolved_splits is not None:
        splits = [
            {k: _json_value(v) for k, v in asdict(s).items() if v is not None and v != ""}
            for s in result.resolved_splits
        ]
    return {
        "is_valid": result.is_valid,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
        "suggestions": list(result.suggestions),
        "applied_strategy": _json_value(result.applied_strategy),
        "resolved_splits": splits,
    }

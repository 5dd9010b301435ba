"""
CSV export and import functionality for SplitCheck
"""
from __future__ import annotations
import csv
from typing import List, Sequence

from config import member_from_dict
from models import Member, SplitEntry
from utils import format_number

SPLIT_COLUMNS = ['member_id', 'name', 'amount', 'percentage', 'shares', 'weight', 'adjustment', 'adjustment_reason']


def _blank_to_none(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


def import_roster_from_csv(filepath: str) -> List[Member]:
    """
    Import roster from CSV file
    CSV columns: id, name, income (optional), weight (optional)
    """
    members = []
    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            members.append(member_from_dict({
                'id': row['id'].strip(),
                'name': (row.get('name') or '').strip(),
                'income': _blank_to_none(row.get('income')),
                'weight': _blank_to_none(row.get('weight')),
            }))
    return members


def import_split_entries_from_csv(filepath: str) -> List[SplitEntry]:
    """
    Import split parameters from CSV file.
    Uses the same columns as export_splits_to_csv; 'name' is ignored and blank
    cells mean "not given".
    """
    entries = []
    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            entries.append(SplitEntry(
                member_id=row['member_id'].strip(),
                amount=_blank_to_none(row.get('amount')) or '0',
                percentage=_blank_to_none(row.get('percentage')),
                shares=_blank_to_none(row.get('shares')),
                weight=_blank_to_none(row.get('weight')),
                adjustment=_blank_to_none(row.get('adjustment')),
                adjustment_reason=(row.get('adjustment_reason') or '').strip(),
            ))
    return entries


def export_splits_to_csv(splits: Sequence[SplitEntry], roster: Sequence[Member], filepath: str) -> None:
    """Export resolved splits to CSV file, one row per member"""
    names = {m.id: m.name for m in roster}

    def cell(value):
        return '' if value is None else format_number(value)

    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(SPLIT_COLUMNS)
        for s in splits:
            writer.writerow([
                s.member_id,
                names.get(s.member_id, s.member_id),
                f"{s.amount:.2f}",
                cell(s.percentage),
                cell(s.shares),
                cell(s.weight),
                cell(s.adjustment),
                s.adjustment_reason,
            ])

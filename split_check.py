"""
SplitCheck command line
- Validate an expense draft against a group roster and print the resolved split.
- Optionally write the split to CSV and a report to Excel.

Run:
  split-check draft.json roster.csv --excel report.xlsx

Dependencies:
  pip install openpyxl
"""
from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys
from typing import List, Optional

from advisor import suggest_split_methods
from config import DEFAULT_CONFIG, draft_from_dict, load_config, load_roster, result_to_dict
from csv_handler import export_splits_to_csv, import_roster_from_csv, import_split_entries_from_csv
from engine import validate_expense
from excel_export import export_split_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="split-check",
        description="Validate an expense split and compute each member's share.",
    )
    parser.add_argument("draft", help="expense draft JSON file")
    parser.add_argument("roster", help="roster file (.json or .csv)")
    parser.add_argument("--config", help="engine config JSON file")
    parser.add_argument("--splits", help="CSV with split parameters, replaces the draft's splits")
    parser.add_argument("--csv", dest="csv_out", help="write resolved splits to this CSV file")
    parser.add_argument("--excel", dest="excel_out", help="write a report workbook to this .xlsx file")
    parser.add_argument("--suggest", action="store_true", help="also list split methods that fit the draft")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns 0 when valid, 1 when invalid, 2 on bad input"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.draft, "r", encoding="utf-8") as f:
            draft = draft_from_dict(json.load(f))
        if args.roster.lower().endswith(".csv"):
            roster = import_roster_from_csv(args.roster)
        else:
            roster = load_roster(args.roster)
        if args.splits:
            draft = dataclasses.replace(draft, splits=tuple(import_split_entries_from_csv(args.splits)))
        config = load_config(args.config) if args.config else DEFAULT_CONFIG
    except (OSError, ValueError, KeyError, AttributeError) as ex:
        logger.error("could not read input: %s", ex)
        return 2

    result = validate_expense(draft, roster, config)
    output = result_to_dict(result)
    if args.suggest:
        output["suggested_strategies"] = [s.value for s in suggest_split_methods(draft, roster)]
    print(json.dumps(output, indent=2, ensure_ascii=False))

    if args.csv_out and result.resolved_splits is not None:
        export_splits_to_csv(result.resolved_splits, roster, args.csv_out)
    if args.excel_out:
        export_split_report(draft, roster, result, args.excel_out)

    return 0 if result.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())

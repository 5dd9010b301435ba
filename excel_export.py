"""
Excel export functionality for SplitCheck
"""
from __future__ import annotations
from decimal import Decimal
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import ExpenseDraft, Member, SplitStrategy, ValidationResult
from utils import to_decimal, today_str

SEVERITY_FILLS = {
    "Error": "F8CBAD",
    "Warning": "FFE699",
    "Suggestion": "C6E0B4",
}


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=60):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _num(value):
    """Decimal -> float for Excel cells; None stays empty"""
    if value is None:
        return None
    d = to_decimal(value)
    return float(d) if d is not None else str(value)


def export_split_report(
    draft: ExpenseDraft,
    roster: Sequence[Member],
    result: ValidationResult,
    filepath: str,
) -> None:
    """
    Export a validation outcome to Excel with sheets:
    - Splits: one row per member plus a formula total (resolved splits only)
    - Payers: who paid upfront (when payers were given)
    - Findings: errors, warnings and suggestions
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)
    names = {m.id: m.name for m in roster}
    strategy = SplitStrategy.parse(draft.strategy)

    # Splits sheet
    ws = wb.create_sheet("Splits")
    ws.append([f"{draft.title} ({draft.category})", f"generated {today_str()}"])
    ws.cell(1, 1).font = Font(bold=True)
    ws.append([
        "Requested", strategy.value if strategy else str(draft.strategy),
        "Applied", result.applied_strategy.value if result.applied_strategy else "",
        "Valid", "yes" if result.is_valid else "no",
    ])
    ws.append([])
    headers = ["Member", "Name", "Amount", "Share %", "Percentage", "Shares", "Weight", "Adjustment", "Reason"]
    ws.append(headers)
    header_row = ws.max_row
    _style_header(ws, header_row)
    ws.freeze_panes = f"A{header_row + 1}"

    splits = result.resolved_splits or []
    total = sum((s.amount for s in splits), Decimal("0"))
    for s in splits:
        share = (s.amount / total * 100) if total else None
        ws.append([
            s.member_id,
            names.get(s.member_id, s.member_id),
            _num(s.amount),
            _num(share),
            _num(s.percentage),
            _num(s.shares),
            _num(s.weight),
            _num(s.adjustment),
            s.adjustment_reason,
        ])
    first_data_row = header_row + 1
    last_data_row = ws.max_row
    if splits:
        ws.append(["TOTAL", "", f"=SUM(C{first_data_row}:C{last_data_row})"])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
    for r in range(first_data_row, ws.max_row + 1):
        ws.cell(r, 3).number_format = "0.00"
        ws.cell(r, 4).number_format = "0.00"
        ws.cell(r, 8).number_format = "0.00"
    _autosize_columns(ws)

    # Payers sheet
    if draft.payers:
        ws = wb.create_sheet("Payers")
        ws.append(["Member", "Name", "Paid"])
        _style_header(ws, 1)
        ws.freeze_panes = "A2"
        for p in draft.payers:
            ws.append([p.member_id, names.get(p.member_id, p.member_id), _num(p.amount)])
        ws.append(["TOTAL", "", f"=SUM(C2:C{ws.max_row})"])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
        for r in range(2, ws.max_row + 1):
            ws.cell(r, 3).number_format = "0.00"
        _autosize_columns(ws)

    # Findings sheet
    ws = wb.create_sheet("Findings")
    ws.append(["Severity", "Message"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for severity, messages in (
        ("Error", result.errors),
        ("Warning", result.warnings),
        ("Suggestion", result.suggestions),
    ):
        for message in messages:
            ws.append([severity, message])
            ws.cell(ws.max_row, 1).fill = PatternFill("solid", fgColor=SEVERITY_FILLS[severity])
    _autosize_columns(ws)

    wb.save(filepath)

from __future__ import annotations

from openpyxl import load_workbook

from engine import validate_expense
from excel_export import export_split_report
from models import Payer, SplitEntry


def test_report_for_valid_expense(tmp_path, make_draft, roster):
    draft = make_draft(amount=100, payers=(Payer("a", 60), Payer("b", 40)))
    result = validate_expense(draft, roster)
    path = tmp_path / "report.xlsx"
    export_split_report(draft, roster, result, str(path))

    wb = load_workbook(str(path))
    assert wb.sheetnames == ["Splits", "Payers", "Findings"]

    ws = wb["Splits"]
    assert ws.freeze_panes == "A5"
    assert ws.cell(2, 2).value == "equal"
    assert ws.cell(2, 6).value == "yes"
    assert ws.cell(4, 1).value == "Member"
    assert [ws.cell(r, 1).value for r in range(5, 8)] == ["a", "b", "c"]
    assert ws.cell(5, 3).value == 33.34
    assert ws.cell(8, 1).value == "TOTAL"
    assert ws.cell(8, 3).value == "=SUM(C5:C7)"

    payers = wb["Payers"]
    assert payers.cell(4, 3).value == "=SUM(C2:C3)"


def test_report_lists_findings(tmp_path, make_draft, roster):
    draft = make_draft(
        amount=1000,
        strategy="custom",
        selected_member_ids=("a", "b"),
        splits=(SplitEntry("a", amount=600), SplitEntry("b", amount=500)),
    )
    result = validate_expense(draft, roster)
    path = tmp_path / "report.xlsx"
    export_split_report(draft, roster, result, str(path))

    wb = load_workbook(str(path))
    assert wb.sheetnames == ["Splits", "Findings"]
    assert wb["Splits"].cell(2, 6).value == "no"
    findings = [(row[0], row[1]) for row in wb["Findings"].iter_rows(min_row=2, values_only=True)]
    assert ("Error", result.errors[0]) in findings

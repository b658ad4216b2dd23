"""Export and import of budget data.

The export payload has the shape::

    {"totals": {"budgeted", "actual", "difference", "savings",
                "unexpectedExpenses"},
     "dailyData": [{"date", "rows", "supplementalIncomes",
                    "unexpectedExpenses", "savings"}]}

Every number in it is already in display currency and rounded to cents;
the renderers below only lay that structure out as JSON, CSV, an Excel
workbook or a PDF report.  Imports accept the same structure back.
"""

from __future__ import annotations

import io
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .aggregation import day_records
from .config import BASE_CURRENCY, EXPORTS_DIR
from .currency import format_currency, round_money
from .dates import DateLike, date_key, to_date
from .errors import ImportValidationError
from .models import (
    INCOME_CONTINUE,
    SAVINGS_LABEL,
    BudgetDefinition,
    CategoryPlan,
    DayRecord,
    LedgerEntry,
    LedgerRow,
    RangeTotals,
)
from .storage import ActualsStore

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ['Type', 'Label', 'Budgeted', 'Actual', 'Difference', 'Amount']
TOTALS_COLUMNS = ['Label', 'Budgeted', 'Actual', 'Difference', 'Savings', 'UnexpectedExpenses']


# --------------------------------------------------------------------------- #
# Payload
# --------------------------------------------------------------------------- #

def _money(value: Optional[float]) -> Optional[float]:
    return None if value is None else round_money(value)


def _day_payload(record: DayRecord) -> Dict[str, Any]:
    return {
        'date': record.date,
        'rows': [
            {
                'label': row.label,
                'expected': _money(row.expected),
                'actual': _money(row.actual),
                'difference': _money(row.difference),
            }
            for row in record.rows
        ],
        'supplementalIncomes': [
            {'label': e.label, 'amount': _money(e.amount)} for e in record.supplemental_incomes
        ],
        'unexpectedExpenses': [
            {'label': e.label, 'amount': _money(e.amount)} for e in record.unexpected_expenses
        ],
        'savings': _money(record.derived_savings),
    }


def build_export_payload(
    start: DateLike,
    end: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> Dict[str, Any]:
    """Totals plus one entry per day that carries anything to show."""
    records = day_records(start, end, budget, store, exchange_rate)
    totals = RangeTotals.from_records(records)
    return {
        'totals': {k: round_money(v) for k, v in totals.to_dict().items()},
        'dailyData': [
            _day_payload(r) for r in records if not r.is_empty() or r.derived_savings != 0
        ],
    }


def export_filename(prefix: str, start: DateLike, end: DateLike, extension: str) -> str:
    """e.g. ``Budget_2024-01-01_to_2024-01-31.xlsx``."""
    stem = f"{prefix}_{date_key(start)}_to_{date_key(end)}"
    stem = re.sub(r'[^A-Za-z0-9_\-]+', '_', stem).strip('_') or 'export'
    return f"{stem}.{extension.lstrip('.')}"


def save_export(data: bytes, filename: str, directory: Optional[Path] = None) -> Path:
    target_dir = Path(directory or EXPORTS_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename
    try:
        target.write_bytes(data)
    except OSError as e:
        raise OSError(f"Failed to write export to {target}: {e}") from e
    logger.info("Wrote %s (%d bytes)", target, len(data))
    return target


# --------------------------------------------------------------------------- #
# Tabular views of the payload
# --------------------------------------------------------------------------- #

def totals_frame(payload: Dict[str, Any]) -> pd.DataFrame:
    totals = payload.get('totals', {})
    return pd.DataFrame([{
        'Label': 'Totals',
        'Budgeted': totals.get('budgeted', 0.0),
        'Actual': totals.get('actual', 0.0),
        'Difference': totals.get('difference', 0.0),
        'Savings': totals.get('savings', 0.0),
        'UnexpectedExpenses': totals.get('unexpectedExpenses', 0.0),
    }], columns=TOTALS_COLUMNS)


def day_frame(day: Dict[str, Any]) -> pd.DataFrame:
    """Category rows, a Savings row, then incomes and expenses."""
    rows: List[Dict[str, Any]] = [
        {
            'Type': 'Category',
            'Label': r['label'],
            'Budgeted': r['expected'],
            'Actual': r['actual'],
            'Difference': r['difference'],
        }
        for r in day.get('rows', [])
    ]
    savings = day.get('savings', 0.0)
    rows.append({'Type': 'Savings', 'Label': SAVINGS_LABEL, 'Budgeted': savings, 'Actual': savings, 'Difference': 0.0})
    rows.extend(
        {'Type': 'Supplemental Income', 'Label': e['label'], 'Amount': e['amount']}
        for e in day.get('supplementalIncomes', [])
    )
    rows.extend(
        {'Type': 'Unexpected Expense', 'Label': e['label'], 'Amount': e['amount']}
        for e in day.get('unexpectedExpenses', [])
    )
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def flat_frame(payload: Dict[str, Any]) -> pd.DataFrame:
    """Every day's ledger stacked into one frame with a Date column."""
    frames = []
    for day in payload.get('dailyData', []):
        frame = day_frame(day)
        frame.insert(0, 'Date', day['date'])
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=['Date'] + LEDGER_COLUMNS)
    return pd.concat(frames, ignore_index=True)


# --------------------------------------------------------------------------- #
# Renderers
# --------------------------------------------------------------------------- #

def to_json_bytes(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=False).encode('utf-8')


def to_csv_bytes(payload: Dict[str, Any]) -> bytes:
    """Totals line followed by the stacked daily ledger."""
    buffer = io.StringIO()
    totals_frame(payload).to_csv(buffer, index=False)
    buffer.write('\n')
    flat_frame(payload).to_csv(buffer, index=False)
    return buffer.getvalue().encode('utf-8')


def to_excel_bytes(payload: Dict[str, Any]) -> bytes:
    """Workbook with a Totals sheet and one sheet per day."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        totals_frame(payload).to_excel(writer, sheet_name='Totals', index=False)
        for day in payload.get('dailyData', []):
            # Excel caps sheet names at 31 characters
            day_frame(day).to_excel(writer, sheet_name=str(day['date'])[:31], index=False)
    return buffer.getvalue()


def _table(data: List[List[str]]) -> Table:
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor("#F2F2F2")]),
    ]))
    return table


def to_pdf_bytes(payload: Dict[str, Any], title: str, currency_code: str = BASE_CURRENCY) -> bytes:
    """Totals table, then one page per day with its ledger."""
    def fmt(value: Optional[float]) -> str:
        return format_currency(value or 0.0, currency_code)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=30, leftMargin=30, topMargin=30, bottomMargin=30)
    styles = getSampleStyleSheet()
    totals = payload.get('totals', {})

    elements: List[Any] = [
        Paragraph(f"Totals for {title}", styles['Title']),
        Spacer(1, 0.5 * cm),
        _table([
            ['Label', 'Budgeted', 'Actual', 'Difference', 'Savings', 'Unexpected Expenses'],
            [
                'Totals',
                fmt(totals.get('budgeted')),
                fmt(totals.get('actual')),
                fmt(totals.get('difference')),
                fmt(totals.get('savings')),
                fmt(totals.get('unexpectedExpenses')),
            ],
        ]),
    ]

    for day in payload.get('dailyData', []):
        elements.append(PageBreak())
        elements.append(Paragraph(f"Budget for {day['date']}", styles['Heading2']))
        budget_rows = [['Label', 'Budgeted', 'Actual', 'Difference']]
        budget_rows.extend(
            [r['label'], fmt(r['expected']), fmt(r['actual']), fmt(r['difference'])]
            for r in day.get('rows', [])
        )
        budget_rows.append([SAVINGS_LABEL, fmt(day.get('savings')), fmt(day.get('savings')), fmt(0.0)])
        elements.append(_table(budget_rows))
        elements.append(Spacer(1, 0.5 * cm))

        elements.append(Paragraph('Supplemental Income and Unexpected Expenses', styles['Heading3']))
        extra_rows = [['Label', 'Amount']]
        extra_rows.extend([e['label'], fmt(e['amount'])] for e in day.get('supplementalIncomes', []))
        extra_rows.extend([e['label'], fmt(e['amount'])] for e in day.get('unexpectedExpenses', []))
        elements.append(_table(extra_rows))

    doc.build(elements)
    return buffer.getvalue()


# --------------------------------------------------------------------------- #
# Import
# --------------------------------------------------------------------------- #

@dataclass
class ImportedBudget:
    start_date: date
    end_date: date
    records: List[DayRecord] = field(default_factory=list)
    savings: Dict[str, float] = field(default_factory=dict)
    totals: Dict[str, Any] = field(default_factory=dict)


def _import_amount(value: Any, where: str) -> float:
    if value is None or value == '':
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ImportValidationError(f"Invalid amount {value!r} in {where}") from None


def _import_entries(values: Any, where: str, rate: float) -> List[LedgerEntry]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ImportValidationError(f"Expected a list in {where}")
    entries = []
    for item in values:
        if not isinstance(item, dict):
            raise ImportValidationError(f"Expected label/amount pairs in {where}")
        entries.append(LedgerEntry(str(item.get('label', '')), _import_amount(item.get('amount'), where) / rate))
    return entries


def _import_rows(values: Any, where: str, rate: float) -> List[LedgerRow]:
    if not isinstance(values, list):
        raise ImportValidationError(f"Expected a list of rows in {where}")
    rows = []
    for item in values:
        if not isinstance(item, dict) or not item.get('label'):
            raise ImportValidationError(f"Every row in {where} needs a label")
        actual = item.get('actual')
        rows.append(LedgerRow(
            label=str(item['label']),
            expected=_import_amount(item.get('expected'), where) / rate,
            actual=None if actual in (None, '') else _import_amount(actual, where) / rate,
        ))
    return rows


def parse_import_payload(data: Any, exchange_rate: float = 1.0) -> ImportedBudget:
    """Validate an import as a whole; amounts are converted to base currency.

    The budget window runs from the first to the last ``dailyData`` entry.

    Raises:
        ImportValidationError: When anything, in particular a date, does
            not parse.  Nothing has been applied at that point.
    """
    if not isinstance(data, dict):
        raise ImportValidationError("Import file must contain a JSON object")
    daily = data.get('dailyData')
    if not isinstance(daily, list) or not daily:
        raise ImportValidationError("Import file has no dailyData entries")
    if not exchange_rate or exchange_rate <= 0:
        raise ImportValidationError(f"Invalid exchange rate {exchange_rate!r}")

    records: List[DayRecord] = []
    savings: Dict[str, float] = {}
    for position, day in enumerate(daily):
        if not isinstance(day, dict):
            raise ImportValidationError(f"dailyData[{position}] is not an object")
        try:
            key = date_key(day.get('date'))
        except ValueError:
            raise ImportValidationError(f"Invalid date {day.get('date')!r} in dailyData[{position}]") from None
        where = f"dailyData[{position}]"
        records.append(DayRecord(
            date=key,
            rows=_import_rows(day.get('rows', []), where, exchange_rate),
            supplemental_incomes=_import_entries(day.get('supplementalIncomes'), where, exchange_rate),
            unexpected_expenses=_import_entries(day.get('unexpectedExpenses'), where, exchange_rate),
        ))
        if day.get('savings') is not None:
            savings[key] = _import_amount(day.get('savings'), where) / exchange_rate

    start, end = to_date(records[0].date), to_date(records[-1].date)
    if end < start:
        raise ImportValidationError("The last dailyData entry is dated before the first")
    totals = data.get('totals') if isinstance(data.get('totals'), dict) else {}
    return ImportedBudget(start_date=start, end_date=end, records=records, savings=savings, totals=totals)


def load_import_file(raw: Union[bytes, str], exchange_rate: float = 1.0) -> ImportedBudget:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ImportValidationError(f"Import file is not valid JSON: {exc}") from exc
    return parse_import_payload(data, exchange_rate)


def definition_from_import(imported: ImportedBudget) -> BudgetDefinition:
    """Reconstruct a plan from imported days.

    Each label becomes an undated category carrying the sum of its daily
    expectations.  The unallocated remainder is recovered from the saved
    per-day savings by undoing the savings identity.
    """
    expected_by_label: Dict[str, float] = {}
    for record in imported.records:
        for row in record.rows:
            expected_by_label[row.label] = expected_by_label.get(row.label, 0.0) + row.expected
    expected_by_label.pop(SAVINGS_LABEL, None)

    remaining = 0.0
    for record in imported.records:
        if record.date in imported.savings:
            remaining += (
                imported.savings[record.date]
                - record.total_supplemental_income
                + record.total_unexpected_expenses
                - record.total_difference
            )
    remaining = max(remaining, 0.0)

    categories: Tuple[CategoryPlan, ...] = tuple(
        CategoryPlan(label=label, expected=amount) for label, amount in expected_by_label.items()
    ) + (CategoryPlan(label=SAVINGS_LABEL, expected=remaining),)
    return BudgetDefinition(
        total_budget=sum(expected_by_label.values()) + remaining,
        start_date=imported.start_date,
        end_date=imported.end_date,
        categories=categories,
        income_type=INCOME_CONTINUE,
        remaining_budget=remaining,
    )

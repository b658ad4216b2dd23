#!/usr/bin/env python3
"""Write the stored budget for a date range to JSON, CSV, Excel or PDF."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from moneymap import exports
from moneymap.config import configure_logging
from moneymap.session import BudgetSession

RENDERERS = {
    'json': exports.to_json_bytes,
    'csv': exports.to_csv_bytes,
    'xlsx': exports.to_excel_bytes,
}


def main(fmt: str = 'json', start: Optional[str] = None, end: Optional[str] = None) -> int:
    session = BudgetSession()
    if not session.is_active:
        print("No budget found. Complete setup in the app first.")
        return 1

    window_start, window_end = session.window
    start = start or window_start
    end = end or window_end
    payload = session.export_payload(start, end)
    if fmt == 'pdf':
        data = exports.to_pdf_bytes(payload, f"{start} to {end}")
    else:
        data = RENDERERS[fmt](payload)

    target = exports.save_export(data, exports.export_filename('Budget', start, end, fmt))
    print(f"Wrote {len(payload['dailyData'])} days to {target}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Export the stored budget for a date range.')
    parser.add_argument('--format', dest='fmt', choices=sorted(RENDERERS) + ['pdf'], default='json')
    parser.add_argument('--start', help='First day (YYYY-MM-DD); defaults to the budget start')
    parser.add_argument('--end', help='Last day (YYYY-MM-DD); defaults to the budget end')
    args = parser.parse_args()
    configure_logging()
    raise SystemExit(main(fmt=args.fmt, start=args.start, end=args.end))

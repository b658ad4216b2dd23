"""Top-level package for MoneyMap, a personal budgeting app.

The primary modules are:

* ``allocation`` / ``recurrence`` – per-day expected amounts for each category
* ``ledger`` – one day's rows, incomes, expenses and derived savings
* ``aggregation`` – totals over a date range for the calendar and summary
* ``exports`` – JSON, CSV, Excel and PDF exports and JSON import
* ``session`` – budget lifecycle used by the Streamlit pages

To run the app from the command line you can execute:

```bash
python run_moneymap.py
```
"""

from .aggregation import aggregate_range, daily_totals_frame
from .allocation import allocate, daily_budgeted_savings
from .ledger import build_day_record
from .models import (
    BudgetDefinition,
    CategoryPlan,
    DayRecord,
    LedgerEntry,
    LedgerRow,
    OneTimeSchedule,
    RangeTotals,
    RecurringSchedule,
)
from .recurrence import applies

__all__ = [
    "aggregate_range",
    "daily_totals_frame",
    "allocate",
    "daily_budgeted_savings",
    "build_day_record",
    "applies",
    "BudgetDefinition",
    "CategoryPlan",
    "DayRecord",
    "LedgerEntry",
    "LedgerRow",
    "OneTimeSchedule",
    "RangeTotals",
    "RecurringSchedule",
]

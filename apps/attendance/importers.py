# apps/attendance/importers.py
"""
Spreadsheet adapter for the bulk attendance uploads.

Working-days sheet (one column per month)::

    row 1   month
    row 2   May 2025        June 2025
    row 3   workingDays     workingDays
    row 4+  01-05-2025      02-06-2025 ...

Presence sheet (one column per student and month)::

    row 1   studentId
    row 2   <student id or admission number>
    row 3   month
    row 4   May 2025
    row 5   presentDates
    row 6+  dates
"""

import logging
import zipfile
from dataclasses import dataclass, field
from typing import List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from apps.core.exceptions import InvalidDate, InvalidInput, SchoolCoreError

from .dates import normalize_month, parse_sheet_date

logger = logging.getLogger(__name__)

WORKING_DAYS_MARKER = 'workingdays'


@dataclass
class WorkingDayColumn:
    month: str
    dates: list


@dataclass
class PresenceColumn:
    column: int
    student_ref: str
    month: Optional[str] = None
    dates: List = field(default_factory=list)
    error: Optional[SchoolCoreError] = None


def read_rows(workbook_file):
    """Values of the first worksheet as equally long lists."""
    try:
        workbook = load_workbook(workbook_file, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise InvalidInput(f"Could not read the spreadsheet: {e}")

    try:
        sheet = workbook.worksheets[0]
        rows = [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    width = max((len(row) for row in rows), default=0)
    return [row + [None] * (width - len(row)) for row in rows]


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _cell_text(value):
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip() if value is not None else ''


def _column_dates(rows, col):
    return [
        parse_sheet_date(row[col])
        for row in rows
        if not _is_blank(row[col])
    ]


def parse_working_days_sheet(workbook_file):
    """
    Return one ``WorkingDayColumn`` per usable month column.

    A value that is not a date anywhere in a usable column rejects the
    whole sheet.
    """
    rows = read_rows(workbook_file)
    if len(rows) < 4:
        raise InvalidInput("Invalid working days sheet: expected a month row, a workingDays row and dates.")

    months, markers, date_rows = rows[1], rows[2], rows[3:]
    columns = []
    seen = set()

    for col, label in enumerate(months):
        marker = markers[col]
        if _is_blank(label) or not isinstance(marker, str) or marker.strip().lower() != WORKING_DAYS_MARKER:
            continue

        month = normalize_month(_cell_text(label))
        if month in seen:
            raise InvalidInput(f"Month '{month}' appears in more than one column.")
        seen.add(month)

        try:
            dates = _column_dates(date_rows, col)
        except InvalidDate as e:
            raise InvalidDate(f"Month '{month}': {e.message}")

        if dates:
            columns.append(WorkingDayColumn(month=month, dates=sorted(set(dates))))

    if not columns:
        raise InvalidInput("No valid working days found in the sheet. Check the date format.")
    return columns


def parse_presence_sheet(workbook_file):
    """
    Return one ``PresenceColumn`` per column carrying a student reference.
    Problems in a column are attached to it instead of being raised.
    """
    rows = read_rows(workbook_file)
    if len(rows) < 6:
        raise InvalidInput("Invalid presence sheet: expected studentId, month and presentDates rows.")

    student_refs, months, date_rows = rows[1], rows[3], rows[5:]
    columns = []

    for col, ref in enumerate(student_refs):
        student_ref = _cell_text(ref)
        if not student_ref:
            continue

        column = PresenceColumn(column=col + 1, student_ref=student_ref)
        try:
            column.month = normalize_month(_cell_text(months[col]))
            column.dates = _column_dates(date_rows, col)
        except SchoolCoreError as e:
            logger.warning("Presence sheet column %s rejected: %s", column.column, e.message)
            column.error = e
        columns.append(column)

    return columns

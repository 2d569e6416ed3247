# apps/attendance/dates.py
"""
Date and month-label normalisation.

The reconciliation engine only ever sees ``datetime.date`` objects. Raw
spreadsheet values are converted by ``parse_sheet_date`` at the import
boundary; API payloads go through ``coerce_date``.
"""

from datetime import date, datetime, timedelta

from apps.core.exceptions import InvalidDate, InvalidInput

# Day zero of spreadsheet serial dates.
SHEET_EPOCH = date(1899, 12, 30)

SHEET_TEXT_FORMATS = ('%Y-%m-%d', '%d-%m-%Y', '%d/%m/%Y', '%Y/%m/%d')


def normalize_month(label):
    """Trim and collapse whitespace; month labels are otherwise opaque."""
    if not isinstance(label, str):
        raise InvalidInput("Month must be a text label such as 'May 2025'.")
    month = ' '.join(label.split())
    if not month:
        raise InvalidInput("Month is required.")
    if len(month) > 20:
        raise InvalidInput("Month label is too long.")
    return month


def coerce_date(value):
    """
    Accept a ``date`` (or ``datetime``) or an ISO ``YYYY-MM-DD`` string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDate(f"Invalid date: {value!r}.")


def normalize_dates(values):
    """Coerce every value, collapse duplicates and sort. All or nothing."""
    if isinstance(values, (str, bytes)) or not hasattr(values, '__iter__'):
        raise InvalidInput("Dates must be a list.")
    return sorted({coerce_date(value) for value in values})


def to_iso_list(dates):
    return [d.isoformat() for d in sorted(set(dates))]


def from_iso_list(values):
    return [date.fromisoformat(value) for value in values]


def parse_sheet_date(value):
    """
    Normalise a spreadsheet cell to a date.

    Handles date and datetime cells, ISO / ``DD-MM-YYYY`` / ``DD/MM/YYYY``
    text and numeric serials counted from 1899-12-30.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise InvalidDate(f"Invalid date: {value!r}.")
    if isinstance(value, (int, float)):
        return _from_serial(value)

    if isinstance(value, str):
        text = value.strip()
        for fmt in SHEET_TEXT_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        try:
            return _from_serial(float(text))
        except ValueError:
            pass

    raise InvalidDate(f"Invalid date: {value!r}.")


def _from_serial(serial):
    if serial != serial or serial < 1:
        raise InvalidDate(f"Invalid date serial: {serial!r}.")
    try:
        return SHEET_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        raise InvalidDate(f"Invalid date serial: {serial!r}.")

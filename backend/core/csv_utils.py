"""
Helpers for reading POS CSV exports uploaded through the API.
"""
import csv
import io
import re
from datetime import datetime, date
from decimal import Decimal, InvalidOperation


class CsvFormatError(ValueError):
    pass


def read_csv_upload(uploaded_file):
    """
    Read an uploaded CSV into a list of dicts.
    Header names and values are stripped; blank lines are skipped.
    Returns (headers, rows).
    """
    raw = uploaded_file.read()
    if isinstance(raw, bytes):
        try:
            text = raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            text = raw.decode('latin-1')
    else:
        text = raw

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise CsvFormatError('CSV file is empty or has no header row')

    headers = [(h or '').strip() for h in reader.fieldnames]
    rows = []
    for record in reader:
        row = {}
        for key, value in record.items():
            if key is None:
                continue
            row[key.strip()] = value.strip() if isinstance(value, str) else (value or '')
        if any(row.values()):
            rows.append(row)
    return headers, rows


def first_value(row, *columns):
    """First non-empty value among the given column names"""
    for column in columns:
        value = row.get(column)
        if value:
            return value
    return ''


def parse_money(value, default=Decimal('0')):
    """'$1,234.50' -> Decimal('1234.50'); '(4.00)' -> Decimal('-4.00')"""
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    negative = text.startswith('(') and text.endswith(')')
    text = re.sub(r'[$,()\s]', '', text)
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return default
    return -amount if negative else amount


def parse_decimal(value, default=Decimal('0')):
    return parse_money(value, default)


def parse_date(value):
    """
    Parse a POS date. Accepts MM/DD/YYYY and ISO (YYYY-MM-DD, optionally with a time).
    Returns a date or None.
    """
    if not value:
        return None
    text = str(value).strip()
    for fmt in ('%m/%d/%Y', '%Y-%m-%d'):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None
    return parsed.date() if isinstance(parsed, datetime) else parsed


def parse_iso_date(value):
    """Strict YYYY-MM-DD for query parameters"""
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None

"""
CSV export of parsed transactions.
"""
import csv
import io
import re
from typing import List, Sequence
import logging

from ..models.schema import Transaction

logger = logging.getLogger(__name__)

CSV_COLUMNS = ['date', 'description', 'debit', 'credit', 'value', 'balance']
CASHEW_COLUMNS = ['Date', 'Amount', 'Category', 'Title', 'Note', 'Account']


def _write_rows(header: List[str], rows: Sequence[Sequence[str]]) -> str:
    # Minimal quoting: only fields with a comma, quote or newline get wrapped,
    # and embedded quotes are doubled.
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def to_csv(transactions: Sequence[Transaction]) -> str:
    """
    Serialize transactions with one column per extracted field.

    Args:
        transactions: Parsed transactions

    Returns:
        CSV document; empty string when there is nothing to export
    """
    if not transactions:
        return ''

    rows = [[getattr(txn, column) for column in CSV_COLUMNS] for txn in transactions]
    return _write_rows(CSV_COLUMNS, rows)


def cashew_date(date: str, year: int) -> str:
    """
    Turn a ``DD.MM`` statement date into Cashew's ``DD/MM/YYYY HH:MM:SS``.

    A year printed in the date itself wins over ``year``.
    """
    pieces = re.split(r'[./-]', date)
    day, month = int(pieces[0]), int(pieces[1])
    if len(pieces) > 2 and pieces[2]:
        year = int(pieces[2])
        if year < 100:
            year += 2000
    return f"{day:02d}/{month:02d}/{year} 00:00:00"


def to_cashew_csv(transactions: Sequence[Transaction], year: int,
                  thousands_separator: str = ',', decimal_separator: str = '.') -> str:
    """
    Serialize transactions in the Cashew budgeting app import format.

    Args:
        transactions: Parsed transactions
        year: Statement year, since statement dates carry only day and month
        thousands_separator: Grouping character of the source pattern
        decimal_separator: Decimal mark of the source pattern

    Returns:
        CSV document; empty string when there is nothing to export
    """
    if not transactions:
        return ''

    rows = []
    for txn in transactions:
        amount = txn.signed_amount(thousands_separator, decimal_separator)
        rows.append([
            cashew_date(txn.date, year),
            '' if amount is None else str(amount),
            '',
            txn.description,
            '',
            '',
        ])

    logger.debug(f"Prepared {len(rows)} Cashew rows")
    return _write_rows(CASHEW_COLUMNS, rows)

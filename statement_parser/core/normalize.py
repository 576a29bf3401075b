"""
Field normalization and transaction validation.
"""
import re
from typing import Dict, Optional, Sequence
import logging

from ..models.schema import PatternConfig, Transaction

logger = logging.getLogger(__name__)

NUMERIC_TOKEN = re.compile(r'^[\d.,\s]+$')
SIGNED_NUMERIC_TOKEN = re.compile(r'^-?[\d.,\s]+$')
DECIMAL = re.compile(r'^\d+\.?\d*$')
SIGNED_DECIMAL = re.compile(r'^-?\d+\.?\d*$')

TRANSACTION_FIELDS = ('date', 'description', 'debit', 'credit', 'value', 'balance')


def is_numeric_token(text: str, signed: bool = False) -> bool:
    """True for tokens that can belong to an amount or balance column."""
    pattern = SIGNED_NUMERIC_TOKEN if signed else NUMERIC_TOKEN
    return bool(pattern.match(text))


def clean_number(value: str, thousands_separator: str = ',',
                 decimal_separator: str = '.') -> str:
    """
    Strip thousands separators and whitespace from a money string.

    Args:
        value: Raw money string, e.g. "1,234.56" or "1 234.56"
        thousands_separator: Grouping character used by the statement
        decimal_separator: Decimal mark used by the statement

    Returns:
        Cleaned string with "." as decimal mark
    """
    if thousands_separator:
        value = value.replace(thousands_separator, '')
    cleaned = re.sub(r'\s', '', value)
    if decimal_separator != '.':
        cleaned = cleaned.replace(decimal_separator, '.')
    return cleaned


def is_decimal(value: str, config: PatternConfig, signed: bool = False) -> bool:
    """True when the value is a plain decimal once cleaned."""
    cleaned = clean_number(value, config.thousands_separator, config.decimal_separator)
    pattern = SIGNED_DECIMAL if signed else DECIMAL
    return bool(pattern.match(cleaned))


def first_date(value: str) -> str:
    """First whitespace-separated piece of a date cell."""
    pieces = value.split()
    return pieces[0] if pieces else ""


def rejection_reason(fields: Dict[str, str], config: PatternConfig,
                     amount_fields: Sequence[str], signed: bool = False) -> Optional[str]:
    """
    Check an extracted row against the transaction rules.

    Args:
        fields: Raw field values extracted from one row
        config: Pattern configuration supplying date shape and separators
        amount_fields: Amount fields this pattern fills
        signed: Whether amounts may carry a leading minus

    Returns:
        A short reason when the row must be dropped, None when it is valid
    """
    description = fields.get('description', '').strip()
    balance = fields.get('balance', '').strip()
    date = fields.get('date', '').strip()

    if not description:
        return "empty description"
    if not balance:
        return "empty balance"
    if not re.fullmatch(config.date_regex, date):
        return f"date {date!r} not in expected shape"
    if not is_decimal(balance, config):
        return f"balance {balance!r} not numeric"

    present = []
    for name in amount_fields:
        amount = fields.get(name, '').strip()
        if not amount:
            continue
        if not is_decimal(amount, config, signed=signed):
            return f"{name} {amount!r} not numeric"
        present.append(name)

    if config.require_single_amount and len(present) != 1:
        return f"expected exactly one amount, found {len(present)}"

    return None


def build_transaction(fields: Dict[str, str]) -> Transaction:
    """Trim every field of a validated row into a Transaction."""
    values = {name: fields.get(name, '').strip() for name in TRANSACTION_FIELDS}
    return Transaction(**values)

"""
Value Formatter Module - School Artifacts Service

Central cell formatter used by the CSV and HTML export paths. A column's
format tag decides how every one of its cells is stringified; values that
do not match their tag degrade to plain text instead of failing the export.

Rendering follows the pt-BR conventions of the platform:
- currency: integer minor units -> "R$ 1.497,00"
- number: grouped with '.' and ',' decimals -> "1.234,567"
- percentage: fraction -> "33.33%"
- date / datetime: "15/01/2026" / "15/01/2026 14:30:00"
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union

import pandas as pd

from config import ExportConfig
from .export_types import ColumnFormat

logger = logging.getLogger(__name__)

_CENT = Decimal('0.01')


def format_value(value: Any, format_tag: Optional[Union[ColumnFormat, str]] = None) -> str:
    """
    Format a single cell value according to its column format tag.

    Args:
        value (Any): Raw cell value
        format_tag (ColumnFormat | str | None): Column format tag

    Returns:
        str: Rendered cell text ('' for missing values)
    """
    if _is_missing(value):
        return ''

    tag = _coerce_tag(format_tag)

    try:
        if tag is ColumnFormat.CURRENCY:
            return format_currency(value)
        if tag is ColumnFormat.NUMBER:
            return format_number(value)
        if tag is ColumnFormat.PERCENTAGE:
            return format_percentage(value)
        if tag is ColumnFormat.DATE:
            return format_date(value)
        if tag is ColumnFormat.DATETIME:
            return format_datetime(value)
    except (ValueError, TypeError, InvalidOperation, OverflowError) as e:
        logger.warning(f"Value {value!r} does not match format '{tag.value}', using plain text: {e}")
        return str(value)

    return str(value)


def format_currency(minor_units: Any) -> str:
    """Render integer minor units (cents) as a localized currency string."""
    amount = (to_decimal(minor_units) / 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = '-' if amount < 0 else ''
    return f"{sign}{ExportConfig.CURRENCY_SYMBOL} {localize_number(f'{abs(amount):,.2f}')}"


def format_number(value: Any) -> str:
    """Render a number with locale grouping and up to three fraction digits."""
    number = to_decimal(value)
    digits = ExportConfig.MAX_NUMBER_FRACTION_DIGITS
    quantized = number.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    text = f"{quantized:,.{digits}f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    if text in ('-0', ''):
        text = '0'
    return localize_number(text)


def format_percentage(fraction: Any) -> str:
    """Render a fraction as a percentage fixed to two decimals."""
    percent = (to_decimal(fraction) * 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    if percent == 0:
        percent = percent.copy_abs()
    return f"{percent:.2f}%"


def format_date(value: Any) -> str:
    return parse_timestamp(value).strftime(ExportConfig.DATE_FORMAT)


def format_datetime(value: Any) -> str:
    return parse_timestamp(value).strftime(ExportConfig.DATETIME_FORMAT)


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric cell to Decimal.

    Args:
        value (Any): int, float, Decimal or numeric string

    Returns:
        Decimal: Parsed value

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise ValueError('Boolean is not a numeric value')
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            raise ValueError('Non-finite number')
        return Decimal(repr(value))
    if isinstance(value, str) and value.strip():
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f'Not a number: {value!r}')
        if not parsed.is_finite():
            raise ValueError('Non-finite number')
        return parsed
    raise ValueError(f'Not a number: {value!r}')


def to_number(value: Any) -> Union[int, float]:
    """Numeric cell as a native int/float, for spreadsheet cells."""
    number = to_decimal(value)
    if number == number.to_integral_value() and not isinstance(value, float):
        return int(number)
    return float(number)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a timestamp-like value.

    Accepts datetime/date objects, pandas timestamps, epoch milliseconds and
    ISO-8601 strings. Timezone-aware values are converted to the configured
    export timezone.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError('Boolean is not a timestamp')

    if isinstance(value, (int, float, Decimal)):
        timestamp = pd.Timestamp(float(value), unit='ms', tz='UTC')
    elif isinstance(value, (datetime, date, str, pd.Timestamp)):
        timestamp = pd.Timestamp(value)
    else:
        raise ValueError(f'Unsupported timestamp type: {type(value).__name__}')

    if pd.isna(timestamp):
        raise ValueError(f'Not a timestamp: {value!r}')

    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert(ExportConfig.TIMEZONE)

    return timestamp.to_pydatetime()


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    # NaN / NaT coming from pandas-backed rows
    if isinstance(value, float) and value != value:
        return True
    return value is pd.NaT


def _coerce_tag(format_tag):
    if format_tag is None or isinstance(format_tag, ColumnFormat):
        return format_tag or ColumnFormat.TEXT
    try:
        return ColumnFormat(format_tag)
    except ValueError:
        return ColumnFormat.TEXT


def localize_number(text: str) -> str:
    """Swap Python's ',' grouping and '.' decimals for the configured separators."""
    return (text.replace(',', '\x00')
                .replace('.', ExportConfig.DECIMAL_SEPARATOR)
                .replace('\x00', ExportConfig.THOUSANDS_SEPARATOR))

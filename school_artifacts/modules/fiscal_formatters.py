"""
Fiscal Formatters Module - School Artifacts Service

Brazilian fiscal formatting helpers used by finance reports and SPED-style
text files:
- Currency (BRL) in centavos
- CPF/CNPJ documents and checksums
- Dates (DD/MM/YYYY) and competency periods
- Percentages in basis points
- CEP and phone masks
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from .value_formatter import format_currency, parse_timestamp, localize_number

_NON_DIGITS = re.compile(r'\D')

_CNPJ_WEIGHTS_1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
_CNPJ_WEIGHTS_2 = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


def _digits(value: str) -> str:
    return _NON_DIGITS.sub('', value or '')


# Currency

def format_brl(centavos: int) -> str:
    """Format centavos as 'R$ 1.234,56'."""
    return format_currency(centavos)


def format_brl_plain(centavos: int) -> str:
    """Format centavos as '1.234,56'."""
    amount = (Decimal(centavos) / 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return localize_number(f"{amount:,.2f}")


def parse_brl(value: str) -> int:
    """
    Parse a BRL string into centavos.

    Args:
        value (str): 'R$ 1.234,56' or '1234,56'

    Returns:
        int: Amount in centavos

    Raises:
        ValueError: If no number can be read
    """
    cleaned = re.sub(r'[R$\s]', '', value).replace('.', '').replace(',', '.')
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f'Not a BRL amount: {value!r}')
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


# Percentages

def format_percentage_bp(basis_points: int) -> str:
    """Format basis points (1500 = 15%) as '15,00%'."""
    return f"{format_percentage_bp_plain(basis_points)}%"


def format_percentage_bp_plain(basis_points: int) -> str:
    """Format basis points as '15,00'."""
    percent = (Decimal(basis_points) / 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return localize_number(f"{percent:,.2f}")


# Documents (CPF/CNPJ)

def format_cpf(cpf: str) -> str:
    """Mask a CPF as 000.000.000-00."""
    cleaned = _digits(cpf).zfill(11)
    return f"{cleaned[:3]}.{cleaned[3:6]}.{cleaned[6:9]}-{cleaned[9:11]}"


def format_cnpj(cnpj: str) -> str:
    """Mask a CNPJ as 00.000.000/0000-00."""
    cleaned = _digits(cnpj).zfill(14)
    return f"{cleaned[:2]}.{cleaned[2:5]}.{cleaned[5:8]}/{cleaned[8:12]}-{cleaned[12:14]}"


def format_document(document: str) -> str:
    """Mask a CPF or CNPJ depending on its length."""
    cleaned = _digits(document)
    if len(cleaned) <= 11:
        return format_cpf(cleaned)
    return format_cnpj(cleaned)


def validate_cpf(cpf: str) -> bool:
    """Check a CPF's two verification digits."""
    cleaned = _digits(cpf)
    if len(cleaned) != 11 or len(set(cleaned)) == 1:
        return False

    numbers = [int(char) for char in cleaned]

    total = sum(numbers[i] * (10 - i) for i in range(9))
    digit1 = (total * 10) % 11
    if digit1 == 10:
        digit1 = 0
    if digit1 != numbers[9]:
        return False

    total = sum(numbers[i] * (11 - i) for i in range(10))
    digit2 = (total * 10) % 11
    if digit2 == 10:
        digit2 = 0
    return digit2 == numbers[10]


def validate_cnpj(cnpj: str) -> bool:
    """Check a CNPJ's two verification digits."""
    cleaned = _digits(cnpj)
    if len(cleaned) != 14 or len(set(cleaned)) == 1:
        return False

    numbers = [int(char) for char in cleaned]

    remainder = sum(n * w for n, w in zip(numbers[:12], _CNPJ_WEIGHTS_1)) % 11
    digit1 = 0 if remainder < 2 else 11 - remainder
    if digit1 != numbers[12]:
        return False

    remainder = sum(n * w for n, w in zip(numbers[:13], _CNPJ_WEIGHTS_2)) % 11
    digit2 = 0 if remainder < 2 else 11 - remainder
    return digit2 == numbers[13]


# Dates

def format_date_br(value: Union[date, datetime, str]) -> str:
    """Format a date as DD/MM/YYYY."""
    return parse_timestamp(value).strftime('%d/%m/%Y')


def format_datetime_br(value: Union[date, datetime, str]) -> str:
    """Format a timestamp as DD/MM/YYYY HH:MM."""
    return parse_timestamp(value).strftime('%d/%m/%Y %H:%M')


def format_competency(period: str) -> str:
    """Turn a 'YYYY-MM' competency period into 'MM/YYYY'."""
    year, month = period.split('-')[:2]
    return f"{month}/{year}"


def get_competency_period(value: Union[date, datetime]) -> str:
    """Competency period 'YYYY-MM' of a date."""
    return f"{value.year}-{value.month:02d}"


def parse_date_br(value: str) -> date:
    """Parse 'DD/MM/YYYY' into a date."""
    return datetime.strptime(value.strip(), '%d/%m/%Y').date()


# Postal code / phone

def format_cep(cep: str) -> str:
    """Mask a CEP as 00000-000."""
    cleaned = _digits(cep).zfill(8)
    return f"{cleaned[:5]}-{cleaned[5:8]}"


def format_phone(phone: str) -> str:
    """Mask a phone as (00) 00000-0000 or (00) 0000-0000; other lengths are returned unchanged."""
    cleaned = _digits(phone)
    if len(cleaned) == 11:
        return f"({cleaned[:2]}) {cleaned[2:7]}-{cleaned[7:]}"
    if len(cleaned) == 10:
        return f"({cleaned[:2]}) {cleaned[2:6]}-{cleaned[6:]}"
    return phone


# SPED text files

def format_sped_value(centavos: int) -> str:
    """Amount for SPED files: no grouping, comma decimal ('1234,56')."""
    amount = (Decimal(centavos) / 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return f"{amount:.2f}".replace('.', ',')


def format_sped_date(value: Union[date, datetime]) -> str:
    """Date for SPED files: DDMMYYYY."""
    return value.strftime('%d%m%Y')


def format_sped_line(values: Iterable[Optional[Union[str, int]]]) -> str:
    """Pipe-delimited SPED register line, e.g. '|0000|LECD|01012026|'."""
    return '|' + '|'.join('' if value is None else str(value) for value in values) + '|'

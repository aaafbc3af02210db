"""
Export Types Module - School Artifacts Service

Typed request objects shared by the export engine, the value formatter and
the report templates.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class ExportFormat(str, Enum):
    """Target formats the export engine can serialize to."""
    CSV = 'csv'
    JSON = 'json'
    XLSX = 'xlsx'
    PDF = 'pdf'


class ColumnFormat(str, Enum):
    """Semantic format tag of a column, fixed for the whole export."""
    TEXT = 'text'
    NUMBER = 'number'
    CURRENCY = 'currency'
    DATE = 'date'
    DATETIME = 'datetime'
    PERCENTAGE = 'percentage'


class ColumnAlign(str, Enum):
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'


# Numeric tags stay numeric in spreadsheets
NUMERIC_FORMATS = frozenset({ColumnFormat.CURRENCY, ColumnFormat.NUMBER, ColumnFormat.PERCENTAGE})


@dataclass(frozen=True)
class ExportColumn:
    """Column descriptor: which row key to read and how to render it."""
    key: str
    label: str
    width: Optional[int] = None
    format: Optional[ColumnFormat] = None
    align: Optional[ColumnAlign] = None

    def __post_init__(self):
        # Accept plain strings from JSON payloads and template tables
        if self.format is not None and not isinstance(self.format, ColumnFormat):
            object.__setattr__(self, 'format', ColumnFormat(self.format))
        if self.align is not None and not isinstance(self.align, ColumnAlign):
            object.__setattr__(self, 'align', ColumnAlign(self.align))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ExportColumn':
        return cls(
            key=data['key'],
            label=data.get('label', data['key']),
            width=data.get('width'),
            format=data.get('format'),
            align=data.get('align'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'label': self.label,
            'format': self.format.value if self.format else None,
        }


@dataclass(frozen=True)
class DateRange:
    start: Union[date, datetime]
    end: Union[date, datetime]


@dataclass
class ExportRequest:
    """
    A single-shot export: rows, the column schema that formats them and
    optional report metadata.
    """
    filename: str
    columns: List[ExportColumn]
    data: List[Mapping[str, Any]]
    format: Union[ExportFormat, str] = ExportFormat.CSV
    title: Optional[str] = None
    subtitle: Optional[str] = None
    organization_name: Optional[str] = None
    generated_by: Optional[str] = None
    footer_text: Optional[str] = None
    date_range: Optional[DateRange] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'ExportRequest':
        """
        Build a request from a JSON-style payload.

        Args:
            payload (Mapping[str, Any]): camelCase or snake_case keys

        Returns:
            ExportRequest: Parsed request (format left as given)
        """
        return cls(
            filename=payload.get('filename') or 'export',
            columns=[
                col if isinstance(col, ExportColumn) else ExportColumn.from_dict(col)
                for col in payload.get('columns', [])
            ],
            data=list(payload.get('data', [])),
            format=payload.get('format', ExportFormat.CSV),
            **report_metadata_from_dict(payload)
        )


def report_metadata_from_dict(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Extract the optional report metadata from a JSON-style payload.

    Args:
        payload (Mapping[str, Any]): camelCase or snake_case keys

    Returns:
        Dict[str, Any]: title, subtitle, organization_name, generated_by,
            footer_text and date_range keyword arguments
    """
    date_range = None
    raw_range = payload.get('dateRange') or payload.get('date_range')
    if raw_range:
        date_range = DateRange(
            start=_parse_iso(raw_range['start']),
            end=_parse_iso(raw_range['end'])
        )

    return {
        'title': payload.get('title'),
        'subtitle': payload.get('subtitle'),
        'organization_name': payload.get('organizationName') or payload.get('organization_name'),
        'generated_by': payload.get('generatedBy') or payload.get('generated_by'),
        'footer_text': payload.get('footerText') or payload.get('footer_text'),
        'date_range': date_range,
    }


def _parse_iso(value):
    if isinstance(value, (date, datetime)):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))

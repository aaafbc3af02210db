"""
QR Tracking Module - School Artifacts Service

Builds the payloads printed into marketing QR codes: a short scan URL that
the platform resolves, and the UTM-tagged destination it redirects to.
"""

import secrets
import string
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from config import QRCodeConfig

_SHORT_CODE_ALPHABET = string.ascii_letters + string.digits


def generate_short_code(length: int = None) -> str:
    """
    Generate a random URL-safe code identifying a printed QR code.

    Args:
        length (int): Code length, defaults to QRCodeConfig.SHORT_CODE_LENGTH

    Returns:
        str: Alphanumeric code
    """
    length = length or QRCodeConfig.SHORT_CODE_LENGTH
    return ''.join(secrets.choice(_SHORT_CODE_ALPHABET) for _ in range(length))


def build_scan_url(base_url: str, code: str) -> str:
    """Absolute scan URL encoded into the QR code, e.g. https://host/api/qr/scan/abc123."""
    return f"{base_url.rstrip('/')}{QRCodeConfig.SCAN_PATH}/{code}"


def build_tracking_url(destination: str, qr_code: str,
                       source: str = 'qr', medium: str = 'offline',
                       campaign: Optional[str] = None,
                       content: Optional[str] = None,
                       term: Optional[str] = None) -> str:
    """
    Append attribution parameters to a destination URL.

    Existing query parameters are kept; utm_* values passed here replace
    any with the same name.

    Args:
        destination (str): Landing URL
        qr_code (str): Code of the scanned QR
        source (str): utm_source
        medium (str): utm_medium
        campaign (Optional[str]): utm_campaign
        content (Optional[str]): utm_content, defaults to the QR code
        term (Optional[str]): utm_term

    Returns:
        str: Destination URL with tracking parameters
    """
    tracking = {
        'utm_source': source,
        'utm_medium': medium,
        'utm_campaign': campaign,
        'utm_content': content or qr_code,
        'utm_term': term,
        'qr': qr_code,
    }
    tracking = {key: value for key, value in tracking.items() if value}

    parsed = urlparse(destination)
    query = [(key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True)
             if key not in tracking]
    query.extend(tracking.items())

    return urlunparse(parsed._replace(query=urlencode(query)))

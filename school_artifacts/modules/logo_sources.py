"""
Logo Sources Module - School Artifacts Service

A logo can come from an HTTP(S) URL, an inline data URI or a local file.
Callers that only have a string get it classified once at the boundary by
prefix; everything past that point works with the explicit variant.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union
from urllib.parse import unquote_to_bytes

import httpx

from config import QRCodeConfig

logger = logging.getLogger(__name__)


class LogoFetchError(Exception):
    """Raised when a logo cannot be fetched, decoded or read."""


@dataclass(frozen=True)
class HttpLogo:
    url: str


@dataclass(frozen=True)
class DataUriLogo:
    content: bytes
    media_type: str = 'image/png'


@dataclass(frozen=True)
class LocalPathLogo:
    path: Path


LogoSource = Union[HttpLogo, DataUriLogo, LocalPathLogo]


def classify_logo_source(source: Union[str, Path, LogoSource]) -> LogoSource:
    """
    Turn a logo reference into its explicit source variant.

    Args:
        source: 'http(s)://...' URL, 'data:' URI, filesystem path, or an
            already classified source

    Returns:
        LogoSource: HttpLogo, DataUriLogo or LocalPathLogo

    Raises:
        LogoFetchError: If a data URI cannot be decoded
    """
    if isinstance(source, (HttpLogo, DataUriLogo, LocalPathLogo)):
        return source
    if isinstance(source, Path):
        return LocalPathLogo(source)

    text = str(source).strip()
    lowered = text.lower()

    if lowered.startswith(('http://', 'https://')):
        return HttpLogo(text)
    if lowered.startswith('data:'):
        return _parse_data_uri(text)
    return LocalPathLogo(Path(text))


def load_logo_bytes(source: LogoSource, timeout: float = None) -> bytes:
    """
    Fetch the raw image bytes for a logo source.

    Args:
        source (LogoSource): Classified logo source
        timeout (float): HTTP timeout in seconds

    Returns:
        bytes: Encoded image bytes

    Raises:
        LogoFetchError: If the logo is unreachable or unreadable
    """
    if isinstance(source, DataUriLogo):
        return source.content

    if isinstance(source, LocalPathLogo):
        try:
            return source.path.read_bytes()
        except OSError as e:
            raise LogoFetchError(f"Cannot read logo file {source.path}: {e}") from e

    if isinstance(source, HttpLogo):
        return _fetch_http(source.url, timeout or QRCodeConfig.LOGO_FETCH_TIMEOUT)

    raise LogoFetchError(f"Unsupported logo source: {source!r}")


def _fetch_http(url: str, timeout: float) -> bytes:
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise LogoFetchError(f"Cannot fetch logo from {url}: {e}") from e

    content = response.content
    if len(content) > QRCodeConfig.LOGO_MAX_BYTES:
        raise LogoFetchError(f"Logo at {url} exceeds {QRCodeConfig.LOGO_MAX_BYTES} bytes")

    logger.debug(f"Fetched logo from {url} ({len(content)} bytes)")
    return content


def _parse_data_uri(uri: str) -> DataUriLogo:
    header, separator, payload = uri.partition(',')
    if not separator:
        raise LogoFetchError("Malformed data URI: missing ',' separator")

    media_type = header[5:].split(';')[0] or 'image/png'

    try:
        if ';base64' in header.lower():
            content = base64.b64decode(payload, validate=True)
        else:
            content = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise LogoFetchError(f"Malformed data URI payload: {e}") from e

    return DataUriLogo(content=content, media_type=media_type)

from pathlib import Path

import httpx
import pytest

from school_artifacts.modules import logo_sources
from school_artifacts.modules.logo_sources import (
    DataUriLogo, HttpLogo, LocalPathLogo, LogoFetchError, classify_logo_source, load_logo_bytes
)


def test_classifies_urls():
    assert classify_logo_source('https://cdn.example/logo.png') == HttpLogo('https://cdn.example/logo.png')
    assert isinstance(classify_logo_source('HTTP://cdn.example/logo.png'), HttpLogo)


def test_classifies_base64_data_uri(logo_png, logo_data_uri):
    source = classify_logo_source(logo_data_uri)

    assert source == DataUriLogo(content=logo_png, media_type='image/png')


def test_classifies_percent_encoded_data_uri():
    source = classify_logo_source('data:image/svg+xml,%3Csvg%3E%3C%2Fsvg%3E')

    assert source.media_type == 'image/svg+xml'
    assert source.content == b'<svg></svg>'


def test_malformed_data_uri():
    with pytest.raises(LogoFetchError):
        classify_logo_source('data:image/png;base64')
    with pytest.raises(LogoFetchError):
        classify_logo_source('data:image/png;base64,@@@')


def test_classifies_paths(tmp_path):
    assert classify_logo_source('assets/logo.png') == LocalPathLogo(Path('assets/logo.png'))
    assert classify_logo_source(tmp_path) == LocalPathLogo(tmp_path)


def test_classified_sources_pass_through():
    source = HttpLogo('https://cdn.example/logo.png')
    assert classify_logo_source(source) is source


def test_load_local_file(logo_file, logo_png):
    assert load_logo_bytes(LocalPathLogo(logo_file)) == logo_png


def test_load_missing_file(tmp_path):
    with pytest.raises(LogoFetchError):
        load_logo_bytes(LocalPathLogo(tmp_path / 'missing.png'))


def test_load_http(monkeypatch, logo_png):
    calls = []

    def fake_get(url, timeout, follow_redirects):
        calls.append((url, timeout, follow_redirects))
        return httpx.Response(200, content=logo_png, request=httpx.Request('GET', url))

    monkeypatch.setattr(logo_sources.httpx, 'get', fake_get)

    assert load_logo_bytes(HttpLogo('https://cdn.example/logo.png'), timeout=2) == logo_png
    assert calls == [('https://cdn.example/logo.png', 2, True)]


def test_load_http_error_status(monkeypatch):
    def fake_get(url, timeout, follow_redirects):
        return httpx.Response(404, request=httpx.Request('GET', url))

    monkeypatch.setattr(logo_sources.httpx, 'get', fake_get)

    with pytest.raises(LogoFetchError):
        load_logo_bytes(HttpLogo('https://cdn.example/missing.png'))


def test_load_http_connection_error(monkeypatch):
    def fake_get(url, timeout, follow_redirects):
        raise httpx.ConnectError('connection refused', request=httpx.Request('GET', url))

    monkeypatch.setattr(logo_sources.httpx, 'get', fake_get)

    with pytest.raises(LogoFetchError):
        load_logo_bytes(HttpLogo('https://cdn.example/logo.png'))


def test_load_http_too_large(monkeypatch):
    monkeypatch.setattr(logo_sources.QRCodeConfig, 'LOGO_MAX_BYTES', 10)

    def fake_get(url, timeout, follow_redirects):
        return httpx.Response(200, content=b'x' * 11, request=httpx.Request('GET', url))

    monkeypatch.setattr(logo_sources.httpx, 'get', fake_get)

    with pytest.raises(LogoFetchError):
        load_logo_bytes(HttpLogo('https://cdn.example/huge.png'))


def test_http_logo_failure_maps_to_asset_fetch(monkeypatch, generator):
    def fake_get(url, timeout, follow_redirects):
        raise httpx.ConnectTimeout('timed out', request=httpx.Request('GET', url))

    monkeypatch.setattr(logo_sources.httpx, 'get', fake_get)

    result = generator.generate({'data': 'abc', 'logoUrl': 'https://cdn.example/logo.png'})

    assert not result['success']
    assert result['error_type'] == 'asset_fetch'

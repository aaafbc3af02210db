from urllib.parse import parse_qs, urlparse

from school_artifacts.modules.qr_tracking import build_scan_url, build_tracking_url, generate_short_code


def test_short_code():
    code = generate_short_code()

    assert len(code) == 8
    assert code.isalnum()
    assert len(generate_short_code(12)) == 12
    assert generate_short_code() != generate_short_code()


def test_scan_url():
    assert build_scan_url('https://app.escola.example/', 'Ab12Cd34') == \
        'https://app.escola.example/api/qr/scan/Ab12Cd34'


def test_tracking_url_parameters():
    url = build_tracking_url('https://escola.example/matricula', 'Ab12Cd34', campaign='open-day')
    params = parse_qs(urlparse(url).query)

    assert params == {
        'utm_source': ['qr'],
        'utm_medium': ['offline'],
        'utm_campaign': ['open-day'],
        'utm_content': ['Ab12Cd34'],
        'qr': ['Ab12Cd34'],
    }


def test_tracking_url_keeps_existing_query():
    url = build_tracking_url('https://escola.example/p?ref=folder&utm_source=old#top', 'abc',
                             source='flyer', term='bolsa')
    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    assert params['ref'] == ['folder']
    assert params['utm_source'] == ['flyer']
    assert params['utm_term'] == ['bolsa']
    assert parsed.fragment == 'top'
    assert parsed.path == '/p'

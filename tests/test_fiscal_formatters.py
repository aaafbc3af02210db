from datetime import date, datetime

import pytest

from school_artifacts.modules import fiscal_formatters as fiscal


def test_brl():
    assert fiscal.format_brl(149700) == 'R$ 1.497,00'
    assert fiscal.format_brl_plain(123456) == '1.234,56'
    assert fiscal.parse_brl('R$ 1.234,56') == 123456
    assert fiscal.parse_brl('0,5') == 50


def test_parse_brl_rejects_garbage():
    with pytest.raises(ValueError):
        fiscal.parse_brl('abc')
    with pytest.raises(ValueError):
        fiscal.parse_brl('')


def test_percentage_basis_points():
    assert fiscal.format_percentage_bp(1500) == '15,00%'
    assert fiscal.format_percentage_bp_plain(275) == '2,75'


def test_cpf():
    assert fiscal.format_cpf('52998224725') == '529.982.247-25'
    assert fiscal.validate_cpf('529.982.247-25')
    assert not fiscal.validate_cpf('529.982.247-24')
    assert not fiscal.validate_cpf('111.111.111-11')
    assert not fiscal.validate_cpf('123')


def test_cnpj():
    assert fiscal.format_cnpj('11222333000181') == '11.222.333/0001-81'
    assert fiscal.validate_cnpj('11.222.333/0001-81')
    assert not fiscal.validate_cnpj('11.222.333/0001-80')
    assert not fiscal.validate_cnpj('00000000000000')


def test_format_document():
    assert fiscal.format_document('52998224725') == '529.982.247-25'
    assert fiscal.format_document('11222333000181') == '11.222.333/0001-81'


def test_dates():
    assert fiscal.format_date_br(date(2026, 1, 15)) == '15/01/2026'
    assert fiscal.format_datetime_br(datetime(2026, 1, 15, 8, 5)) == '15/01/2026 08:05'
    assert fiscal.parse_date_br(' 15/01/2026 ') == date(2026, 1, 15)
    assert fiscal.format_competency('2026-03') == '03/2026'
    assert fiscal.get_competency_period(date(2026, 3, 5)) == '2026-03'


def test_masks():
    assert fiscal.format_cep('1310100') == '01310-100'
    assert fiscal.format_phone('11987654321') == '(11) 98765-4321'
    assert fiscal.format_phone('1133334444') == '(11) 3333-4444'
    assert fiscal.format_phone('123') == '123'


def test_sped():
    assert fiscal.format_sped_value(123456) == '1234,56'
    assert fiscal.format_sped_date(date(2026, 1, 1)) == '01012026'
    assert fiscal.format_sped_line(['0000', 'LECD', None, 1]) == '|0000|LECD||1|'

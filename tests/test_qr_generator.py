import base64
import io

import pytest
from PIL import Image
from qrcode.exceptions import DataOverflowError

from school_artifacts.modules.qr_generator import (
    FORMAT_CAPABILITIES, OutputFormat, QRGenerateOptions, parse_hex_color
)

LEVELS = ['L', 'M', 'Q', 'H']


def open_png(result):
    return Image.open(io.BytesIO(result['image'])).convert('RGB')


def decode(image):
    zxingcpp = pytest.importorskip('zxingcpp')

    barcodes = zxingcpp.read_barcodes(image.convert('RGB'))
    return barcodes[0].text if barcodes else ''


def payload_of_length(length):
    base = 'https://escola.example/matricula?c='
    return (base + 'x' * length)[:length]


class TestRasterOutput:

    def test_png_result(self, generator):
        result = generator.generate({'data': 'https://escola.example', 'width': 300})

        assert result['success']
        assert result['mime_type'] == 'image/png'
        assert result['format'] == 'png'
        assert result['image'].startswith(b'\x89PNG')
        assert open_png(result).size == (300, 300)
        assert result['ignored_features'] == []

    def test_byte_identical_for_same_options(self, generator, logo_file):
        options = {
            'data': 'https://escola.example/open-day',
            'width': 360,
            'moduleStyle': 'rounded',
            'logoUrl': str(logo_file),
            'frameText': 'Escaneie aqui',
        }
        first = generator.generate(options)
        second = generator.generate(dict(options))

        assert first['success']
        assert first['image'] == second['image']

    def test_brand_colors(self, generator):
        result = generator.generate(QRGenerateOptions(
            data='cores', width=200, primary_color='#1E3A8A', background_color='#FDF6E3'
        ))
        colors = {color for _, color in open_png(result).getcolors()}

        assert colors == {(0x1E, 0x3A, 0x8A), (0xFD, 0xF6, 0xE3)}

    def test_base64_data_uri(self, generator):
        result = generator.generate({'data': 'abc', 'format': 'base64'})
        prefix = 'data:image/png;base64,'

        assert result['success']
        assert result['image'].startswith(prefix)
        assert base64.b64decode(result['image'][len(prefix):]).startswith(b'\x89PNG')

    def test_frame_text_extends_height(self, generator):
        result = generator.generate({'data': 'abc', 'width': 320, 'frameText': 'Matricule-se'})

        assert result['height'] == 380
        assert open_png(result).size == (320, 380)

    def test_defaults_applied(self, generator):
        result = generator.generate({'data': 'abc'})

        assert result['width'] == 400
        assert result['height'] == 400

    @pytest.mark.parametrize('style', ['rounded', 'circle'])
    def test_module_styles_render(self, generator, style):
        result = generator.generate({'data': 'estilo', 'width': 300, 'moduleStyle': style})

        assert result['success']
        assert open_png(result).size == (300, 300)


class TestDecodability:

    @pytest.mark.parametrize('level', LEVELS)
    @pytest.mark.parametrize('length', [1, 50, 500])
    def test_square_round_trip(self, generator, level, length):
        data = payload_of_length(length)
        result = generator.generate({'data': data, 'width': 1200, 'errorCorrectionLevel': level})

        assert result['success']
        assert decode(open_png(result)) == data

    @pytest.mark.parametrize('level', LEVELS)
    @pytest.mark.parametrize('style', ['rounded', 'circle'])
    def test_styled_round_trip(self, generator, style, level):
        data = 'https://escola.example/rematricula'
        result = generator.generate({'data': data, 'width': 600, 'moduleStyle': style,
                                     'errorCorrectionLevel': level})

        assert decode(open_png(result)) == data

    def test_logo_at_level_h_round_trip(self, generator, logo_file):
        # Level L leaves too little redundancy for a 25% logo and is not asserted
        data = 'https://escola.example/evento'
        result = generator.generate({
            'data': data,
            'width': 800,
            'errorCorrectionLevel': 'H',
            'logo': str(logo_file),
            'logoSizeRatio': 0.25,
        })

        assert result['success']
        assert decode(open_png(result)) == data

    def test_frame_text_round_trip(self, generator):
        data = 'https://escola.example'
        result = generator.generate({'data': data, 'width': 600, 'frameText': 'Aponte a câmera'})

        assert decode(open_png(result)) == data


class TestLogo:

    def test_logo_from_path(self, generator, logo_file):
        result = generator.generate({'data': 'abc', 'width': 400, 'logo': str(logo_file)})
        image = open_png(result)

        assert result['success']
        # Logo fill is drawn over the centre of the code
        assert image.getpixel((200, 170)) == (220, 38, 38)

    def test_logo_from_data_uri(self, generator, logo_data_uri):
        result = generator.generate({'data': 'abc', 'width': 400, 'logo': logo_data_uri})

        assert result['success']
        assert open_png(result).getpixel((200, 170)) == (220, 38, 38)

    def test_missing_logo_is_asset_fetch_error(self, generator, tmp_path):
        result = generator.generate({'data': 'abc', 'logo': str(tmp_path / 'nope.png')})

        assert not result['success']
        assert result['error_type'] == 'asset_fetch'

    def test_unreadable_logo_is_asset_fetch_error(self, generator, tmp_path):
        path = tmp_path / 'logo.png'
        path.write_bytes(b'not an image')
        result = generator.generate({'data': 'abc', 'logo': str(path)})

        assert result['error_type'] == 'asset_fetch'


class TestSvgOutput:

    def test_plain_svg(self, generator):
        result = generator.generate({'data': 'abc', 'format': 'svg', 'width': 250,
                                     'primaryColor': '#112233'})

        assert result['success']
        assert result['mime_type'] == 'image/svg+xml'
        assert '<svg' in result['image']
        assert '#123' in result['image'] or '#112233' in result['image']
        assert result['ignored_features'] == []

    def test_svg_size_matches_reported_width(self, generator):
        result = generator.generate({'data': 'https://escola.example/matricula', 'format': 'svg',
                                     'width': 250})
        svg = result['image']

        assert result['width'] == 250
        assert 'width="250"' in svg
        assert 'height="250"' in svg
        assert 'viewBox=' in svg

    def test_branding_is_reported_as_ignored(self, generator, logo_file):
        result = generator.generate({
            'data': 'abc',
            'format': 'svg',
            'moduleStyle': 'circle',
            'logo': str(logo_file),
            'frameText': 'Legenda',
        })

        assert result['success']
        assert result['ignored_features'] == ['module_style', 'logo', 'frame_text']
        assert result['height'] == result['width']

    def test_capability_matrix(self):
        assert FORMAT_CAPABILITIES[OutputFormat.SVG] == frozenset()
        assert 'logo' in FORMAT_CAPABILITIES[OutputFormat.PNG]


class TestErrors:

    @pytest.mark.parametrize('options', [
        {'data': 'abc', 'primaryColor': 'red'},
        {'data': 'abc', 'backgroundColor': '#FFF'},
        {'data': 'abc', 'width': 0},
        {'data': 'abc', 'width': '400'},
        {'data': 'abc', 'errorCorrectionLevel': 'X'},
        {'data': 'abc', 'moduleStyle': 'hexagon'},
        {'data': 'abc', 'format': 'gif'},
        {'data': 'abc', 'logo': 'logo.png', 'logoSizeRatio': 1.5},
        {'data': ''},
        {'width': 300},
    ])
    def test_invalid_options(self, generator, options):
        result = generator.generate(options)

        assert not result['success']
        assert result['error_type'] == 'invalid_option'

    @pytest.mark.parametrize('output_format', ['png', 'base64', 'svg'])
    def test_payload_too_large(self, generator, output_format):
        result = generator.generate({'data': 'x' * 5000, 'errorCorrectionLevel': 'H',
                                     'format': output_format})

        assert not result['success']
        assert result['error_type'] == 'encoding'

    def test_base_encoding_overflow_raises_data_overflow(self, generator):
        with pytest.raises(DataOverflowError):
            generator._generate_base_qr('x' * 5000, 400, 'H')

    def test_parse_hex_color(self):
        assert parse_hex_color('#ff8000') == (255, 128, 0)
        with pytest.raises(ValueError):
            parse_hex_color('#ff80')


class TestBatch:

    def test_preserves_order_and_isolates_failures(self, generator):
        items = [
            {'data': 'primeiro', 'width': 200},
            {'data': 'segundo', 'primaryColor': 'blue'},
            {'data': 'terceiro', 'format': 'svg'},
            {'data': 'quarto', 'format': 'base64'},
        ]
        results = generator.batch_generate(items)

        assert [r['success'] for r in results] == [True, False, True, True]
        assert results[0]['width'] == 200
        assert results[1]['error_type'] == 'invalid_option'
        assert results[2]['format'] == 'svg'
        assert results[3]['format'] == 'base64'

    def test_matches_single_generation(self, generator):
        items = [{'data': f'aluno-{i}', 'width': 160} for i in range(6)]
        results = generator.batch_generate(items)

        assert [r['image'] for r in results] == [generator.generate(item)['image'] for item in items]

    def test_empty_batch(self, generator):
        assert generator.batch_generate([]) == []

"""
Tests for the File Encoder.
"""

import base64
import io
import pytest
from unittest.mock import Mock

from nutrition_advisor.models.data_models import EncodedImage
from nutrition_advisor.services.file_encoder import (
    FileEncoder, FileReadError, UnsupportedFileType, resolve_mime_type, split_data_uri
)


class TestResolveMimeType:
    """The picker's type filter."""

    def test_declared_type_wins(self):
        assert resolve_mime_type('photo.jpg', 'image/png') == 'image/png'

    def test_declared_type_with_parameters(self):
        assert resolve_mime_type('photo', 'image/JPEG; charset=binary') == 'image/jpeg'

    @pytest.mark.parametrize("filename,expected", [
        ('photo.jpg', 'image/jpeg'),
        ('photo.JPEG', 'image/jpeg'),
        ('photo.png', 'image/png'),
        ('photo.gif', None),
        ('photo.webp', None),
        ('photo', None),
        ('', None),
        (None, None),
    ])
    def test_extension_fallback(self, filename, expected):
        assert resolve_mime_type(filename, 'application/octet-stream') == expected

    def test_disallowed_declared_type_falls_back_to_extension(self):
        assert resolve_mime_type('photo.gif', 'image/gif') is None


class TestSplitDataUri:

    def test_split(self):
        assert split_data_uri('data:image/png;base64,iVBORw0KGgo=') == ('image/png', 'iVBORw0KGgo=')

    @pytest.mark.parametrize("uri", ['', 'iVBORw0KGgo=', 'data:image/png,raw', 'http://example.com/a.png'])
    def test_malformed(self, uri):
        with pytest.raises(ValueError):
            split_data_uri(uri)


class TestFileEncoder:
    """Test cases for the FileEncoder class."""

    def setup_method(self):
        self.encoder = FileEncoder()

    def test_encode_bytes(self, sample_image_data):
        image = self.encoder.encode(sample_image_data, 'image/jpeg', 'photo.jpg')

        assert isinstance(image, EncodedImage)
        assert image.mime_type == 'image/jpeg'
        assert image.filename == 'photo.jpg'
        assert image.size == len(sample_image_data)
        assert base64.b64decode(image.data) == sample_image_data

    def test_encode_stream(self, sample_png_data):
        image = self.encoder.encode(io.BytesIO(sample_png_data), 'image/png', 'photo.png')
        assert image.data_uri.startswith('data:image/png;base64,')
        assert base64.b64decode(image.data) == sample_png_data

    def test_preview_payload_round_trips(self, sample_image_data):
        image = self.encoder.encode(sample_image_data, 'image/jpeg')
        mime_type, payload = split_data_uri(image.data_uri)

        assert mime_type == 'image/jpeg'
        assert payload == image.data
        assert base64.b64decode(payload) == sample_image_data

    def test_unsupported_type(self, sample_image_data):
        with pytest.raises(UnsupportedFileType):
            self.encoder.encode(sample_image_data, 'image/gif', 'photo.gif')

    def test_empty_file(self):
        with pytest.raises(FileReadError):
            self.encoder.encode(b'', 'image/jpeg', 'empty.jpg')

    def test_unreadable_stream(self):
        stream = Mock()
        stream.read.side_effect = OSError("device not ready")

        with pytest.raises(FileReadError):
            self.encoder.encode(stream, 'image/png', 'broken.png')


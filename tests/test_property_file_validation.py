"""
Property-based tests for file type filtering.

Only JPEG and PNG uploads are accepted; everything else is rejected.
"""

import pytest
from hypothesis import given, strategies as st
from nutrition_advisor.app import allowed_file
from nutrition_advisor.services.file_encoder import resolve_mime_type


ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg'}
SAFE_NAMES = st.text(
    alphabet=st.characters(whitelist_categories=('Lu', 'Ll', 'Nd'), whitelist_characters='-_ '),
    min_size=1, max_size=20
).filter(lambda name: name.strip())


class TestFileFormatValidationProperty:
    """Property-based tests for file format validation."""

    @given(SAFE_NAMES, st.sampled_from(['jpg', 'jpeg', 'JPG', 'JPEG', 'Jpeg']))
    def test_jpeg_extensions_accepted(self, base_name, extension):
        filename = f"{base_name.strip()}.{extension}"

        assert allowed_file(filename, ALLOWED_EXTENSIONS) is True
        assert resolve_mime_type(filename) == 'image/jpeg'

    @given(SAFE_NAMES, st.sampled_from(['png', 'PNG', 'Png']))
    def test_png_extensions_accepted(self, base_name, extension):
        filename = f"{base_name.strip()}.{extension}"

        assert allowed_file(filename, ALLOWED_EXTENSIONS) is True
        assert resolve_mime_type(filename) == 'image/png'

    @given(SAFE_NAMES, st.sampled_from(['txt', 'pdf', 'gif', 'bmp', 'tiff', 'svg', 'webp', 'heic', 'exe', 'zip']))
    def test_other_extensions_rejected(self, base_name, extension):
        filename = f"{base_name.strip()}.{extension}"

        assert allowed_file(filename, ALLOWED_EXTENSIONS) is False
        assert resolve_mime_type(filename) is None

    @given(st.text(min_size=0, max_size=50).filter(lambda x: '.' not in x))
    def test_files_without_extension_rejected(self, filename):
        assert allowed_file(filename, ALLOWED_EXTENSIONS) is False
        assert resolve_mime_type(filename) is None

    @given(st.sampled_from(['image/gif', 'image/webp', 'text/plain', 'application/pdf', 'image/svg+xml']))
    def test_disallowed_declared_types_rejected(self, mime_type):
        assert resolve_mime_type('upload', mime_type) is None

    @pytest.mark.parametrize("name", ['.', '..'])
    def test_dot_only_filename_rejected(self, name):
        assert allowed_file(name, ALLOWED_EXTENSIONS) is False
        assert resolve_mime_type(name) is None

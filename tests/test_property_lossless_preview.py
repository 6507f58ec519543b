"""
Property-based test: the preview shows exactly the bytes that were selected.
"""

import base64
import io
from hypothesis import given, settings, strategies as st

from nutrition_advisor.services.file_encoder import FileEncoder, split_data_uri


class TestLosslessPreviewProperty:

    @given(st.binary(min_size=1, max_size=4096), st.sampled_from(['image/jpeg', 'image/png']))
    @settings(max_examples=100, deadline=500)
    def test_preview_decodes_to_selected_bytes(self, content, mime_type):
        image = FileEncoder().encode(io.BytesIO(content), mime_type, 'upload')

        preview_mime, payload = split_data_uri(image.data_uri)

        assert preview_mime == mime_type
        assert base64.b64decode(payload) == content
        assert image.size == len(content)

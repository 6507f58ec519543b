"""
Shared fixtures for the Nutrition Advisor tests.
"""

import pytest
from unittest.mock import Mock

from nutrition_advisor.app import create_app
from nutrition_advisor.services.answer_requester import AnswerRequester


# Smallest valid-looking headers; the encoder does not inspect content
JPEG_BYTES = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00' + b'\x00' * 64 + b'\xff\xd9'
PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00' + b'\x00' * 32


@pytest.fixture
def sample_image_data():
    return JPEG_BYTES


@pytest.fixture
def sample_png_data():
    return PNG_BYTES


@pytest.fixture
def mock_requester():
    """Answer requester whose remote call is replaced by a mock."""
    requester = AnswerRequester(api_key='test-google-key', model='gemini-test')
    requester.generate_answer = Mock(return_value="Calories: 250")
    return requester


@pytest.fixture
def app(mock_requester):
    app = create_app('testing', answer_requester=mock_requester)
    return app


@pytest.fixture
def client(app):
    return app.test_client()

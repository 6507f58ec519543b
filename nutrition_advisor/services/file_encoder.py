"""
File Encoder for Nutrition Advisor.

Turns one uploaded food photo into a base64 payload that serves both as the
inline preview (as a data URI) and as the body sent to the analysis model.
"""

import base64
import io
import logging
import mimetypes
from typing import Optional, Tuple, Union, BinaryIO

from ..models.data_models import EncodedImage


logger = logging.getLogger(__name__)

ACCEPTED_MIME_TYPES = {
    'image/jpeg': ('jpg', 'jpeg'),
    'image/png': ('png',),
}


class UnsupportedFileType(ValueError):
    """Raised when a file is not one of the accepted image types."""


class FileReadError(IOError):
    """Raised when an uploaded file cannot be read into a usable payload."""


def resolve_mime_type(filename: Optional[str], declared_mime_type: Optional[str] = None) -> Optional[str]:
    """
    Resolve the MIME type of an upload, accepting only JPEG and PNG.

    Args:
        filename: Name of the uploaded file
        declared_mime_type: MIME type declared by the browser, if any

    Returns:
        The accepted MIME type, or None if the file is not an accepted image
    """
    if declared_mime_type:
        declared = declared_mime_type.split(';', 1)[0].strip().lower()
        if declared in ACCEPTED_MIME_TYPES:
            return declared

    if not filename or '.' not in filename:
        return None

    extension = filename.rsplit('.', 1)[1].lower()
    for mime_type, extensions in ACCEPTED_MIME_TYPES.items():
        if extension in extensions:
            return mime_type

    guessed = mimetypes.guess_type(filename)[0]
    return guessed if guessed in ACCEPTED_MIME_TYPES else None


def split_data_uri(data_uri: str) -> Tuple[str, str]:
    """
    Split a base64 data URI into its MIME type and payload.

    Args:
        data_uri: URI of the form ``data:<mime>;base64,<payload>``

    Returns:
        Tuple of (mime_type, payload)

    Raises:
        ValueError: If the URI is not a base64 data URI
    """
    if not data_uri or not data_uri.startswith('data:') or ',' not in data_uri:
        raise ValueError("Not a data URI")

    header, payload = data_uri.split(',', 1)
    if not header.endswith(';base64'):
        raise ValueError("Data URI is not base64 encoded")

    return header[len('data:'):-len(';base64')], payload


class FileEncoder:
    """Encodes uploaded image files as base64 payloads."""

    def encode(self, source: Union[bytes, BinaryIO], mime_type: str,
               filename: str = "") -> EncodedImage:
        """
        Read an image file and encode its full content.

        Args:
            source: Raw bytes or a readable binary stream
            mime_type: MIME type resolved for the file
            filename: Original filename, kept for display and logging

        Returns:
            EncodedImage with the base64 payload

        Raises:
            UnsupportedFileType: If the MIME type is not JPEG or PNG
            FileReadError: If the file cannot be read or is empty
        """
        if mime_type not in ACCEPTED_MIME_TYPES:
            raise UnsupportedFileType(f"Unsupported file type: {mime_type}")

        image_data = self._read(source)
        if not image_data:
            raise FileReadError("The uploaded file is empty")

        logger.debug(f"Encoded {filename or 'upload'}: {len(image_data)} bytes, {mime_type}")
        return EncodedImage(
            mime_type=mime_type,
            data=base64.b64encode(image_data).decode('ascii'),
            filename=filename,
            size=len(image_data)
        )

    def _read(self, source: Union[bytes, BinaryIO]) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        if isinstance(source, io.BytesIO):
            return source.getvalue()

        try:
            return source.read()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read uploaded file: {e}")
            raise FileReadError(f"Could not read the uploaded file: {e}") from e

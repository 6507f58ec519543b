"""
Data models for the Nutrition Advisor application.

This module contains the Pydantic models and session state used to track a
single food-photo analysis from upload to rendered result.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Literal
from enum import Enum
from pydantic import BaseModel, Field
import time
import uuid
from datetime import datetime


class SessionState(Enum):
    """Explicit state of one browser session's analysis."""
    IDLE = "idle"
    AWAITING = "awaiting"
    DONE = "done"
    FAILED = "failed"


class ErrorType(Enum):
    """Enumeration of error types that can occur during processing."""
    ANALYSIS = "analysis"


class InvalidTransition(Exception):
    """Raised when a session is asked to move to a state it cannot reach."""

    def __init__(self, current: SessionState, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} while session is {current.value}")


class RequestInFlight(InvalidTransition):
    """Raised when an analysis request is started twice for the same image."""

    def __init__(self):
        super().__init__(SessionState.AWAITING, "start another request")


class StaleRequest(Exception):
    """Raised when a request settles after its session was reset or moved on."""


@dataclass
class ProcessingError:
    """Represents an error that occurred during processing."""
    type: ErrorType
    message: str
    recoverable: bool = True
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'message': self.message,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp
        }


class EncodedImage(BaseModel):
    """An uploaded image held as base64 text plus its MIME type."""
    mime_type: Literal["image/jpeg", "image/png"] = Field(..., description="Image MIME type")
    data: str = Field(..., min_length=1, description="Base64 payload without data URI prefix")
    filename: str = Field(default="", description="Original filename")
    size: int = Field(default=0, ge=0, description="Size of the decoded image in bytes")

    @property
    def data_uri(self) -> str:
        """Data URI usable directly as an image source."""
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class AnalysisSession:
    """
    In-memory state of one page view.

    The session moves IDLE -> AWAITING -> DONE, or AWAITING -> FAILED on a
    failed request. FAILED can be retried back to AWAITING, and reset()
    returns any state to IDLE.
    """
    session_id: str
    state: SessionState = SessionState.IDLE
    image: Optional[EncodedImage] = None
    result_text: Optional[str] = None
    error: Optional[ProcessingError] = None
    request_token: Optional[str] = None
    updated_at: float = field(default_factory=time.time)

    @property
    def is_pending(self) -> bool:
        return self.state is SessionState.AWAITING and self.request_token is not None

    def select_image(self, image: EncodedImage) -> None:
        if self.state is not SessionState.IDLE:
            raise InvalidTransition(self.state, "select an image")
        self.image = image
        self.state = SessionState.AWAITING
        self._touch()

    def begin_request(self) -> str:
        """Mark a request as started and return the token that must settle it."""
        if self.state is not SessionState.AWAITING:
            raise InvalidTransition(self.state, "start an analysis request")
        if self.request_token is not None:
            raise RequestInFlight()
        self.request_token = uuid.uuid4().hex
        self._touch()
        return self.request_token

    def complete(self, token: str, text: str) -> None:
        self._check_token(token)
        self.result_text = text
        self.request_token = None
        self.state = SessionState.DONE
        self._touch()

    def fail(self, token: str, error: ProcessingError) -> None:
        self._check_token(token)
        self.error = error
        self.request_token = None
        self.state = SessionState.FAILED
        self._touch()

    def retry(self) -> None:
        if self.state is not SessionState.FAILED:
            raise InvalidTransition(self.state, "retry")
        self.error = None
        self.state = SessionState.AWAITING
        self._touch()

    def reset(self) -> None:
        self.image = None
        self.result_text = None
        self.error = None
        self.request_token = None
        self.state = SessionState.IDLE
        self._touch()

    def _check_token(self, token: str) -> None:
        # A reset drops the token; a new request after it gets a different one
        if not self.is_pending or token != self.request_token:
            raise StaleRequest(f"Request {token} no longer matches session {self.session_id}")

    def _touch(self) -> None:
        self.updated_at = time.time()

    def to_view(self, render=None) -> Dict[str, Any]:
        """
        Build the display dictionary used by the page template and JSON API.

        Args:
            render: Optional callable turning result text into HTML

        Returns:
            Dictionary describing what the page should show
        """
        result_html = None
        if self.result_text is not None and render is not None:
            result_html = str(render(self.result_text))

        return {
            'state': self.state.value,
            'image_data_uri': self.image.data_uri if self.image else None,
            'result_text': self.result_text,
            'result_html': result_html,
            'is_pending': self.is_pending,
            'error': self.error.to_dict() if self.error else None,
            'can_reset': self.state is SessionState.DONE,
            'can_retry': self.state is SessionState.FAILED
        }

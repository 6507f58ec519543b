"""
Analysis Service - orchestration for Nutrition Advisor.

Coordinates the file encoder, the answer requester and the per-session state
machine: a photo is selected, analysed once, and the session settles as
done or failed until the user retries or resets.
"""

import logging
import threading
import time
from typing import Dict, Optional, BinaryIO, Union

from ..models.data_models import (
    AnalysisSession, InvalidTransition, ProcessingError, ErrorType, SessionState,
    StaleRequest
)
from .answer_requester import AnswerRequester, AnalysisError
from .file_encoder import FileEncoder, split_data_uri


logger = logging.getLogger(__name__)


class SessionStore:
    """
    Thread-safe in-memory store of analysis sessions keyed by session id.

    Sessions untouched for longer than ``max_age`` seconds are dropped, and
    when more than ``max_sessions`` are held the least recently updated ones
    go first.
    """

    def __init__(self, max_age: float = 3600, max_sessions: int = 1000):
        self.max_age = max_age
        self.max_sessions = max_sessions
        self._sessions: Dict[str, AnalysisSession] = {}
        self.lock = threading.RLock()

    def get(self, session_id: str) -> AnalysisSession:
        """Get the session for an id, creating an idle one if needed."""
        with self.lock:
            self._evict(exclude=session_id)
            session = self._sessions.get(session_id)
            if session is None:
                session = AnalysisSession(session_id=session_id)
                self._sessions[session_id] = session
                self._evict(exclude=session_id)
            return session

    def discard(self, session_id: str) -> None:
        with self.lock:
            self._sessions.pop(session_id, None)

    def _evict(self, exclude: str) -> None:
        now = time.time()
        for session_id, session in list(self._sessions.items()):
            if session_id != exclude and now - session.updated_at > self.max_age:
                logger.debug(f"Discarding idle session {session_id}")
                self.discard(session_id)

        overflow = len(self._sessions) - self.max_sessions
        if overflow > 0:
            oldest = sorted(
                (s for s in self._sessions.values() if s.session_id != exclude),
                key=lambda s: s.updated_at
            )
            for session in oldest[:overflow]:
                logger.debug(f"Discarding session {session.session_id}: store full")
                self.discard(session.session_id)

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)


class AnalysisService:
    """Drives one session through select, analyse, retry and reset."""

    def __init__(self, requester: AnswerRequester,
                 encoder: Optional[FileEncoder] = None,
                 store: Optional[SessionStore] = None):
        self.requester = requester
        self.encoder = encoder or FileEncoder()
        self.store = store or SessionStore()

    def get_session(self, session_id: str) -> AnalysisSession:
        return self.store.get(session_id)

    def select_image(self, session_id: str, source: Union[bytes, BinaryIO],
                     mime_type: str, filename: str = "") -> AnalysisSession:
        """
        Encode an uploaded photo and attach it to an idle session.

        Raises:
            InvalidTransition: If the session already holds an image
            UnsupportedFileType: If the file is not JPEG or PNG
            FileReadError: If the file cannot be read
        """
        session = self.store.get(session_id)
        with self.store.lock:
            if session.state is not SessionState.IDLE:
                raise InvalidTransition(session.state, "select an image")
        image = self.encoder.encode(source, mime_type, filename)
        with self.store.lock:
            session.select_image(image)

        logger.info(f"Image selected for session {session_id}: {image.size} bytes, {image.mime_type}")
        return session

    def run_analysis(self, session_id: str) -> AnalysisSession:
        """
        Send the session's image for analysis and settle the session.

        Failures are logged and recorded on the session; they are not raised.
        A request that settles after the session was reset is dropped.

        Raises:
            InvalidTransition: If the session is not awaiting a result
            RequestInFlight: If a request for this image is already running
        """
        session = self.store.get(session_id)
        with self.store.lock:
            token = session.begin_request()
            mime_type, payload = split_data_uri(session.image.data_uri)

        try:
            request = self.requester.build_request(payload, mime_type)
            answer = self.requester.generate_answer(request)
        except AnalysisError as e:
            logger.error(f"Analysis failed for session {session_id}: {e}")
            error = ProcessingError(type=ErrorType.ANALYSIS, message=str(e))
        except Exception as e:
            logger.error(f"Unexpected analysis error for session {session_id}: {e}", exc_info=True)
            error = ProcessingError(
                type=ErrorType.ANALYSIS,
                message="The nutrition analysis service could not be reached"
            )
        else:
            self._settle(session, session.complete, token, answer)
            return session

        self._settle(session, session.fail, token, error)
        return session

    def _settle(self, session: AnalysisSession, settle, token: str, outcome) -> None:
        with self.store.lock:
            try:
                settle(token, outcome)
            except StaleRequest as e:
                logger.warning(f"Dropping stale analysis result: {e}")
                return
        logger.info(f"Analysis settled for session {session.session_id}: {session.state.value}")

    def retry(self, session_id: str) -> AnalysisSession:
        session = self.store.get(session_id)
        with self.store.lock:
            session.retry()
        logger.info(f"Retrying analysis for session {session_id}")
        return session

    def reset(self, session_id: str) -> AnalysisSession:
        session = self.store.get(session_id)
        with self.store.lock:
            session.reset()
        logger.info(f"Session {session_id} reset")
        return session

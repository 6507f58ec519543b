# Services package

from .file_encoder import FileEncoder, FileReadError, UnsupportedFileType
from .answer_requester import AnswerRequester, AnalysisRequest, AnalysisError
from .markdown_renderer import render_markdown
from .analysis_service import AnalysisService, SessionStore

__all__ = [
    'FileEncoder',
    'FileReadError',
    'UnsupportedFileType',
    'AnswerRequester',
    'AnalysisRequest',
    'AnalysisError',
    'render_markdown',
    'AnalysisService',
    'SessionStore'
]

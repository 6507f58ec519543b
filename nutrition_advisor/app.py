"""
Nutrition Advisor Flask Application

This module contains the Flask application factory: configuration, logging,
CORS, security headers, error handlers and the routes that take a food
photo through encoding, analysis and display.
"""

from collections.abc import Mapping
from typing import Optional, Union, Tuple, Any
from flask import Flask, request, jsonify, render_template, session, redirect, url_for, flash
from flask_cors import CORS
import logging
import uuid
from werkzeug.exceptions import RequestEntityTooLarge, BadRequest
from werkzeug.middleware.proxy_fix import ProxyFix

from nutrition_advisor.config import get_config, validate_api_credentials
from nutrition_advisor.models.data_models import InvalidTransition, RequestInFlight
from nutrition_advisor.services.analysis_service import AnalysisService, SessionStore
from nutrition_advisor.services.answer_requester import AnswerRequester, create_answer_requester
from nutrition_advisor.services.file_encoder import (
    ACCEPTED_MIME_TYPES, FileReadError, UnsupportedFileType, resolve_mime_type
)
from nutrition_advisor.services.markdown_renderer import render_markdown


SESSION_KEY = 'analysis_id'


class UploadError(Exception):
    """An upload request that cannot be turned into an image."""

    def __init__(self, error: str, message: str, error_code: str):
        self.error = error
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def create_app(config: Optional[Union[str, Mapping]] = None,
               answer_requester: Optional[AnswerRequester] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Configuration name ('development', 'production', 'testing')
            or a mapping of settings applied over the default configuration
        answer_requester: Requester to use instead of one built from config

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__, template_folder='templates')

    # Load configuration
    if isinstance(config, Mapping):
        settings = get_config(config.get('CONFIG_NAME'))
        for key, value in config.items():
            setattr(settings, key, value)
        app.config.from_object(settings)
    else:
        settings = get_config(config)
        app.config.from_object(settings)
    app.extensions['settings'] = settings

    configure_logging(app)
    app.logger.debug(f"Configuration: {settings.mask_sensitive_config()}")

    # Add proxy fix for production deployments
    if not app.config.get('DEBUG', False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    configure_cors(app)

    requester = answer_requester or create_answer_requester(app.config)
    validate_startup_credentials(app, requester)

    store = SessionStore(max_age=app.config['SESSION_TTL'], max_sessions=app.config['MAX_SESSIONS'])
    app.extensions['analysis_service'] = AnalysisService(requester, store=store)

    register_error_handlers(app)
    register_routes(app)
    register_security_headers(app)

    app.logger.info("Flask application created successfully")
    return app


def configure_logging(app: Flask) -> None:
    """Configure application logging."""
    log_level = logging.DEBUG if app.config.get('DEBUG') else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(log_level)


def configure_cors(app: Flask) -> None:
    """
    Configure Cross-Origin Resource Sharing (CORS) for the JSON API.

    Args:
        app: Flask application
    """
    cors_origins = app.config.get('CORS_ORIGINS', [])

    if cors_origins:
        CORS(app,
             resources={r"/api/*": {"origins": cors_origins}},
             methods=['GET', 'POST', 'OPTIONS'],
             allow_headers=['Content-Type', 'X-Requested-With'],
             supports_credentials='*' not in cors_origins,
             max_age=3600)

        app.logger.info(f"CORS configured with origins: {cors_origins}")
    else:
        app.logger.warning("CORS not configured - no origins specified")


def validate_startup_credentials(app: Flask, requester: AnswerRequester) -> None:
    """
    Log the state of the analysis credential on startup.

    Args:
        app: Flask application
        requester: Answer requester that will hold the credential
    """
    validation_results = validate_api_credentials(app.extensions['settings'])
    for service, is_valid in validation_results.items():
        if is_valid:
            app.logger.info(f"{service} credentials validated successfully")
        else:
            app.logger.warning(f"{service} credentials not configured or invalid")

    info = requester.get_service_info()
    if info['available']:
        app.logger.info(f"Analysis client configured: {info['model']} {info['api_key_masked']}")
    else:
        app.logger.warning("Analysis client not configured - uploads will fail until GOOGLE_API_KEY is set")


def register_security_headers(app: Flask) -> None:
    """
    Register security headers for all responses.

    Args:
        app: Flask application
    """
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        if not app.config.get('DEBUG'):
            csp = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline'; "
                "style-src 'self' 'unsafe-inline'; "
                "img-src 'self' data:; "
                "connect-src 'self';"
            )
            response.headers['Content-Security-Policy'] = csp

        return response


def error_response(error: str, message: str, error_code: str, status: int) -> Tuple[Any, int]:
    return jsonify({
        'error': error,
        'message': message,
        'error_code': error_code
    }), status


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask application."""

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(error):
        """Handle file size too large errors."""
        app.logger.warning(f"File too large error from {request.remote_addr}")
        limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return error_response('File too large', f'Please upload an image smaller than {limit_mb}MB',
                              'FILE_TOO_LARGE', 413)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error):
        """Handle bad request errors."""
        app.logger.warning(f"Bad request from {request.remote_addr}: {error}")
        return error_response('Bad request', 'Invalid request format or missing required data',
                              'BAD_REQUEST', 400)

    @app.errorhandler(UploadError)
    def handle_upload_error(error):
        app.logger.info(f"Upload rejected: {error.error_code}")
        return error_response(error.error, error.message, error.error_code, 400)

    @app.errorhandler(RequestInFlight)
    def handle_request_in_flight(error):
        return error_response('Request in flight', 'An analysis for this image is already running',
                              'REQUEST_IN_FLIGHT', 409)

    @app.errorhandler(InvalidTransition)
    def handle_invalid_transition(error):
        app.logger.info(f"Invalid session transition: {error}")
        return error_response('Invalid state', str(error), 'INVALID_STATE', 409)

    @app.errorhandler(404)
    def handle_not_found(error):
        """Handle not found errors."""
        return error_response('Not found', 'The requested resource was not found', 'NOT_FOUND', 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return error_response('Method not allowed', 'This endpoint does not support that method',
                              'METHOD_NOT_ALLOWED', 405)

    @app.errorhandler(500)
    def handle_internal_error(error):
        """Handle internal server errors."""
        app.logger.error(f'Internal server error: {error}', exc_info=True)
        return error_response('Internal server error', 'An unexpected error occurred. Please try again.',
                              'INTERNAL_ERROR', 500)


def get_session_id() -> str:
    """Return the analysis session id bound to the caller's cookie, creating one if needed."""
    session_id = session.get(SESSION_KEY)
    if not session_id:
        session_id = uuid.uuid4().hex
        session[SESSION_KEY] = session_id
    return session_id


def read_upload(allowed_extensions: set):
    """
    Validate the uploaded file in the current request.

    Returns:
        Tuple of (file storage, resolved MIME type)

    Raises:
        UploadError: If no usable JPEG or PNG file was uploaded
    """
    if 'file' not in request.files:
        raise UploadError('No file provided', 'Please select an image file to upload', 'NO_FILE')

    file = request.files['file']

    if file.filename == '':
        raise UploadError('No file selected', 'Please select an image file to upload', 'NO_FILE_SELECTED')

    mime_type = resolve_mime_type(file.filename, file.mimetype)
    if mime_type is None or not allowed_file(file.filename, allowed_extensions):
        raise UploadError('Invalid file type', 'Please upload a JPEG or PNG image', 'INVALID_FILE_TYPE')

    return file, mime_type


def select_uploaded_image(service: AnalysisService, session_id: str, allowed_extensions: set):
    """Read, encode and attach the uploaded photo to the caller's session."""
    file, mime_type = read_upload(allowed_extensions)
    try:
        return service.select_image(session_id, file.stream, mime_type, file.filename)
    except UnsupportedFileType as e:
        raise UploadError('Invalid file type', str(e), 'INVALID_FILE_TYPE') from e
    except FileReadError as e:
        raise UploadError('Empty file', 'The uploaded file appears to be empty or unreadable',
                          'EMPTY_FILE') from e


def register_routes(app: Flask) -> None:
    """
    Register application routes.

    Args:
        app: Flask application
    """
    service: AnalysisService = app.extensions['analysis_service']
    allowed_extensions = app.config['ALLOWED_EXTENSIONS']

    def session_view():
        return service.get_session(get_session_id()).to_view(render_markdown)

    @app.route('/')
    def index():
        """Main application page."""
        return render_template('index.html',
                               view=session_view(),
                               accept=','.join(ACCEPTED_MIME_TYPES),
                               site_name=app.config.get('SITE_NAME'),
                               site_url=app.config.get('SITE_URL'),
                               example_url=app.config.get('EXAMPLE_URL'))

    @app.route('/health')
    def health_check():
        """Health check endpoint with security information."""
        settings = app.extensions['settings']
        api_config = settings.get_api_config()
        return jsonify({
            'status': 'healthy',
            'service': 'nutrition-advisor',
            'version': '1.0',
            'services': {
                'analysis_configured': service.requester.is_configured(),
                'model': api_config['model']
            },
            'security': {
                'cors_enabled': bool(app.config.get('CORS_ORIGINS')),
                'credential_server_side': True,
                'ssl_required': not app.config.get('DEBUG', False)
            }
        })

    @app.route('/api/config')
    def get_api_config():
        """Get API configuration status (without sensitive data)."""
        return jsonify(app.extensions['settings'].get_api_config())

    @app.route('/upload', methods=['POST'])
    def upload_image():
        """Handle a plain form upload: select the photo and analyse it in one request."""
        session_id = get_session_id()
        try:
            select_uploaded_image(service, session_id, allowed_extensions)
        except UploadError as e:
            flash(e.message, 'error')
            return redirect(url_for('index'))
        except InvalidTransition:
            flash('Reset the current analysis before uploading another photo.', 'error')
            return redirect(url_for('index'))

        service.run_analysis(session_id)
        return redirect(url_for('index'))

    @app.route('/api/session')
    def get_session_state():
        return jsonify(session_view())

    @app.route('/api/image', methods=['POST'])
    def api_select_image():
        """Encode an uploaded photo and move the session to awaiting analysis."""
        session_id = get_session_id()
        analysis = select_uploaded_image(service, session_id, allowed_extensions)
        app.logger.info(f"Image accepted for session {session_id} from {request.remote_addr}")
        return jsonify(analysis.to_view(render_markdown))

    @app.route('/api/analysis', methods=['POST'])
    def api_run_analysis():
        """Run the outstanding analysis request and return the settled session."""
        analysis = service.run_analysis(get_session_id())
        return jsonify(analysis.to_view(render_markdown))

    @app.route('/api/retry', methods=['POST'])
    def api_retry():
        analysis = service.retry(get_session_id())
        return jsonify(analysis.to_view(render_markdown))

    @app.route('/api/reset', methods=['POST'])
    def api_reset():
        analysis = service.reset(get_session_id())
        return jsonify(analysis.to_view(render_markdown))

    @app.route('/retry', methods=['POST'])
    def retry_page():
        session_id = get_session_id()
        service.retry(session_id)
        service.run_analysis(session_id)
        return redirect(url_for('index'))

    @app.route('/reset', methods=['POST'])
    def reset_page():
        service.reset(get_session_id())
        return redirect(url_for('index'))


def allowed_file(filename: str, allowed_extensions: set) -> bool:
    """
    Check if the uploaded file has an allowed extension.

    Args:
        filename: Name of the uploaded file
        allowed_extensions: Set of allowed file extensions

    Returns:
        True if file extension is allowed, False otherwise
    """
    if not filename or '.' not in filename:
        return False

    extension = filename.rsplit('.', 1)[1].lower()
    return extension in allowed_extensions

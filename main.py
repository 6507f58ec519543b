"""
Main entry point for the Nutrition Advisor application.
"""

from nutrition_advisor.app import create_app
import os
import logging


logger = logging.getLogger(__name__)


def main():
    """Main function to run the Flask application."""
    config_name = os.environ.get('FLASK_ENV', 'development')

    app = create_app(config_name)

    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '0.0.0.0')
    debug = app.config.get('DEBUG', False)

    logger.info(f"Starting Nutrition Advisor on {host}:{port}")
    logger.info(f"Environment: {config_name}")
    if debug:
        app.logger.warning("Running in DEBUG mode - not suitable for production")

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()

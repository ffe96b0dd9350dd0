"""
Flask Web Application for the Status Page

Serves the public status API and the admin API used to manage services,
interventions and their comments.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
import sys

from flask import Flask, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_cors import CORS
from flask_talisman import Talisman

from config import get_config
from admin_routes import admin_bp
from status_routes import init_status_page, status_bp

# Load configuration
config = get_config()

app = Flask(__name__)
app.secret_key = config.flask_secret_key
app.config['TESTING'] = config.testing

# Initialize limiter - will be enabled/disabled based on runtime configuration
limiter = Limiter(
    key_func=get_remote_address,
    app=app,
    default_limits=[],  # Set per-blueprint limits instead
    storage_uri="memory://",
    strategy="fixed-window"
)


def should_limit():
    """Check if rate limiting should be applied (not in testing mode)."""
    # Use app.config['TESTING'] so tests can modify it dynamically
    return not app.config.get('TESTING', False) and config.rate_limit_enabled


# Configure CORS on the public API only
if config.cors_enabled:
    CORS(app,
         resources={r"/api/(status|services|interventions)/*": {"origins": config.cors_origins}},
         methods=['GET', 'OPTIONS'],
         allow_headers=['Content-Type'],
         max_age=600)


# Configure logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Console handler
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
console_handler.setFormatter(console_formatter)
logger.addHandler(console_handler)

# File handler for production (if not in debug mode)
if not app.debug and not config.testing:
    # Create logs directory if it doesn't exist
    os.makedirs(os.path.dirname(config.log_file) or '.', exist_ok=True)
    file_handler = RotatingFileHandler(config.log_file, maxBytes=config.log_max_bytes, backupCount=config.log_backup_count)
    file_handler.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    file_formatter = logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)
    logging.getLogger().addHandler(file_handler)
    logger.info('Status Page startup')

# Configure HTTPS enforcement with Talisman (disabled in debug/testing mode)
debug_mode = '--debug' in sys.argv or config.flask_debug

if not config.testing and not debug_mode and config.https_enabled:
    Talisman(
        app,
        force_https=True,
        strict_transport_security=True,
        strict_transport_security_max_age=31536000,  # 1 year
        content_security_policy={
            'default-src': ["'self'"],
            'style-src': ["'self'", "'unsafe-inline'"],
            'img-src': ["'self'", 'data:', 'https:'],
        },
    )
    logger.info('HTTPS enforcement enabled with Talisman (strict transport security, CSP headers)')
else:
    if config.testing:
        logger.debug('HTTPS enforcement disabled (testing mode)')
    elif debug_mode:
        logger.info('HTTPS enforcement disabled (debug mode)')
    else:
        logger.info('HTTPS enforcement disabled by configuration (HTTPS_ENABLED=false)')


# Rate limits apply per blueprint and must be attached before registration
limiter.limit(config.rate_limit_public, exempt_when=lambda: not should_limit())(status_bp)
limiter.limit(config.rate_limit_admin, exempt_when=lambda: not should_limit())(admin_bp)

init_status_page(app, config)


@app.route('/')
def index():
    """Entry point listing the public API."""
    return jsonify({
        'title': config.site_title,
        'endpoints': {
            'status': '/api/status',
            'ongoing': '/api/interventions/ongoing',
            'upcoming': '/api/interventions/upcoming',
            'past': '/api/interventions/past',
        }
    })


if __name__ == '__main__':
    # Suppress werkzeug TLS handshake errors (happens when browsers try HTTPS on HTTP server)
    werkzeug_logger = logging.getLogger('werkzeug')

    class TLSErrorFilter(logging.Filter):
        def filter(self, record):
            # Filter out "Bad request version" errors which are TLS handshakes
            return 'Bad request version' not in record.getMessage()

    werkzeug_logger.addFilter(TLSErrorFilter())

    logger.info(f'Starting Status Page on http://{config.flask_host}:{config.flask_port}')
    logger.info(f'Debug mode: {debug_mode}')
    logger.info(f'Service deletion policy: {config.service_deletion_policy}')

    if debug_mode:
        logger.warning('Running in DEBUG mode - not suitable for production!')

    # Validate configuration
    missing_keys = config.validate_required_keys()
    if missing_keys:
        logger.warning(f'Missing recommended configuration: {", ".join(missing_keys)}')

    app.run(debug=debug_mode, host=config.flask_host, port=config.flask_port)

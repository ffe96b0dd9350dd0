"""Flask routes for the public status page API."""

import logging
from flask import Blueprint, jsonify, request

from dependencies import get_container
from models import ErrorResponse
from presentation import (
    render_global_status,
    render_intervention,
    render_interventions,
    render_service_overview,
    render_service_status,
)
from status_engine import IntegrityError, NotFound, ValidationError

logger = logging.getLogger(__name__)

# Create blueprint
status_bp = Blueprint('status', __name__, url_prefix='/api')


def _queries_and_now():
    """Sample the clock once and read one snapshot for the current request."""
    container = get_container()
    now = container.get_clock().now()
    return container.get_queries(), now


def error_response(status_code: int, error: str, message: str, field=None, details=None):
    body = ErrorResponse(error=error, message=message, field=field, details=details or [])
    return jsonify(body.model_dump(exclude_none=True)), status_code


def register_error_handlers(app):
    """Map status page exceptions to JSON error responses."""

    @app.errorhandler(NotFound)
    def handle_not_found(e):
        logger.info(f"Not found: {e}")
        return error_response(404, 'not_found', str(e))

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        logger.warning(f"Validation error: {e}")
        return error_response(400, 'validation_error', e.message, field=e.field)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        logger.error(f"Data integrity violation while rendering status: {e}", exc_info=True)
        return error_response(500, 'integrity_error', 'Status data is inconsistent')


def init_status_page(app, config):
    """Register the public and admin blueprints and error handlers.

    Args:
        app: Flask application instance
        config: Application configuration
    """
    from admin_routes import admin_bp

    register_error_handlers(app)
    app.register_blueprint(status_bp)
    app.register_blueprint(admin_bp)
    app.logger.info(f"Status page initialized ({config.site_title})")


@status_bp.route('/status')
def global_status():
    """Top-line status plus every service with its interventions."""
    queries, now = _queries_and_now()
    status = queries.global_status(now)
    overview = queries.services_overview(now)

    return jsonify({
        'title': get_container().get_config().site_title,
        'now': now.isoformat(),
        'status': render_global_status(status),
        'ongoing_count': queries.current_interventions_count(now),
        'services': [render_service_overview(o) for o in overview],
    })


@status_bp.route('/services/<int:service_id>/status')
def service_status(service_id):
    """Status of one service."""
    queries, now = _queries_and_now()
    status = queries.service_status(service_id, now)
    return jsonify(render_service_status(status, now))


@status_bp.route('/interventions/ongoing')
def ongoing_interventions():
    """Ongoing interventions, soonest to end first."""
    queries, now = _queries_and_now()
    return jsonify({
        'now': now.isoformat(),
        'interventions': render_interventions(queries.ongoing_interventions(now)),
    })


@status_bp.route('/interventions/upcoming')
def upcoming_interventions():
    """Upcoming interventions, soonest to start first."""
    queries, now = _queries_and_now()
    return jsonify({
        'now': now.isoformat(),
        'interventions': render_interventions(queries.upcoming_interventions(now)),
    })


@status_bp.route('/interventions/past')
def past_interventions():
    """Past interventions, most recently ended first.

    ``?limit=N`` overrides the configured limit; 0 lists everything.
    """
    raw_limit = request.args.get('limit')
    if raw_limit is None:
        limit = get_container().get_config().past_interventions_limit
    else:
        try:
            limit = int(raw_limit)
        except ValueError:
            return error_response(400, 'validation_error', 'limit must be an integer', field='limit')
    if limit < 0:
        return error_response(400, 'validation_error', 'limit must not be negative', field='limit')

    queries, now = _queries_and_now()
    return jsonify({
        'now': now.isoformat(),
        'interventions': render_interventions(queries.past_interventions(now, limit=limit or None)),
    })


@status_bp.route('/interventions/<int:intervention_id>')
def intervention_detail(intervention_id):
    """One intervention with its timing and comments."""
    queries, now = _queries_and_now()
    return jsonify(render_intervention(queries.intervention(intervention_id, now)))

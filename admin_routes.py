"""Flask routes for administrating services and interventions."""

import hmac
import logging
from datetime import timedelta

from flask import Blueprint, jsonify, request
from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from dependencies import get_container
from models import (
    CommentPayload,
    InterventionPayload,
    InterventionUpdatePayload,
    ServicePayload,
    ServiceUpdatePayload,
)
from status_routes import error_response

logger = logging.getLogger(__name__)

# Create blueprint
admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.before_request
def require_admin_token():
    """Check the bearer token when one is configured."""
    token = get_container().get_config().admin_token
    if not token:
        return None

    header = request.headers.get('Authorization', '')
    provided = header[len('Bearer '):] if header.startswith('Bearer ') else ''
    if not hmac.compare_digest(provided.encode(), token.encode()):
        logger.warning(f"Rejected admin request to {request.path} from {request.remote_addr}")
        return error_response(401, 'unauthorized', 'Missing or invalid admin token')
    return None


def _parse(model: type) -> BaseModel:
    """Parse the JSON body into a pydantic model, raising PayloadError on failure."""
    return model.model_validate(request.get_json(silent=True))


@admin_bp.errorhandler(PayloadError)
def handle_payload_error(e):
    details = [
        {'field': '.'.join(str(p) for p in err['loc']), 'message': err['msg']}
        for err in e.errors()
    ]
    logger.warning(f"Invalid admin request to {request.path}: {details}")
    return error_response(400, 'invalid_request', 'Request body is invalid', details=details)


# ----------------------------------------------------------------------
# Services
# ----------------------------------------------------------------------

@admin_bp.route('/services', methods=['GET'])
def list_services():
    """Services with the number of interventions that affected them."""
    store = get_container().get_store()
    return jsonify({
        'services': [
            {**service.to_dict(), 'num_interventions': count}
            for service, count in store.list_services_with_intervention_counts()
        ]
    })


@admin_bp.route('/services', methods=['POST'])
def create_service():
    payload = _parse(ServicePayload)
    service = get_container().get_store().create_service(name=payload.name, url=payload.url)
    return jsonify(service.to_dict()), 201


@admin_bp.route('/services/<int:service_id>', methods=['PUT'])
def update_service(service_id):
    payload = _parse(ServiceUpdatePayload)
    service = get_container().get_store().update_service(service_id, name=payload.name, url=payload.url)
    return jsonify(service.to_dict())


@admin_bp.route('/services/<int:service_id>', methods=['DELETE'])
def delete_service(service_id):
    get_container().get_store().delete_service(service_id)
    return '', 204


# ----------------------------------------------------------------------
# Interventions
# ----------------------------------------------------------------------

@admin_bp.route('/interventions', methods=['GET'])
def list_interventions():
    store = get_container().get_store()
    return jsonify({'interventions': [i.to_dict() for i in store.list_interventions()]})


@admin_bp.route('/interventions', methods=['POST'])
def create_intervention():
    payload = _parse(InterventionPayload)
    intervention = get_container().get_store().create_intervention(
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.resolved_end_date(),
        severity=payload.severity,
        affected_services=payload.services,
        is_planned=payload.is_planned,
        status=payload.status,
    )
    return jsonify(intervention.to_dict()), 201


@admin_bp.route('/interventions/<int:intervention_id>', methods=['PUT'])
def update_intervention(intervention_id):
    payload = _parse(InterventionUpdatePayload)
    store = get_container().get_store()

    end_date = payload.end_date
    if payload.estimated_duration is not None:
        start_date = payload.start_date or store.get_intervention(intervention_id).start_date
        end_date = start_date + timedelta(minutes=payload.estimated_duration)

    intervention = store.update_intervention(
        intervention_id,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=end_date,
        severity=payload.severity,
        affected_services=payload.services,
        is_planned=payload.is_planned,
        status=payload.status,
    )
    return jsonify(intervention.to_dict())


@admin_bp.route('/interventions/<int:intervention_id>', methods=['DELETE'])
def delete_intervention(intervention_id):
    get_container().get_store().delete_intervention(intervention_id)
    return '', 204


@admin_bp.route('/interventions/<int:intervention_id>/comments', methods=['POST'])
def add_comment(intervention_id):
    payload = _parse(CommentPayload)
    container = get_container()
    comment = container.get_store().add_comment(
        intervention_id,
        description=payload.description,
        date=payload.date or container.get_clock().now(),
    )
    return jsonify(comment.to_dict()), 201

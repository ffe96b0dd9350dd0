"""
Request and response models for the Status Page API.

This package contains Pydantic models for admin request bodies and errors.
"""

from .service_payload import ServicePayload, ServiceUpdatePayload
from .intervention_payload import InterventionPayload, InterventionUpdatePayload
from .comment_payload import CommentPayload
from .error_response import ErrorResponse

__all__ = [
    'ServicePayload',
    'ServiceUpdatePayload',
    'InterventionPayload',
    'InterventionUpdatePayload',
    'CommentPayload',
    'ErrorResponse',
]

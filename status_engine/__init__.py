"""Intervention lifecycle and status aggregation engine for the status page."""

from .clock import FixedClock, SystemClock
from .engine import compute_global_status, compute_service_status
from .errors import IntegrityError, NotFound, StatusPageError, ValidationError
from .lifecycle import InterventionTiming, classify, partition, timing
from .models import (
    Comment,
    GlobalStatus,
    Intervention,
    InterventionStatus,
    Service,
    ServiceStatus,
    Severity,
    TemporalState,
)
from .queries import InterventionView, ServiceOverview, StatusQueries, StatusSnapshot
from .severity import SeverityResolution, resolve_service_severity

__all__ = [
    'Comment',
    'FixedClock',
    'GlobalStatus',
    'IntegrityError',
    'Intervention',
    'InterventionStatus',
    'InterventionTiming',
    'InterventionView',
    'NotFound',
    'Service',
    'ServiceOverview',
    'ServiceStatus',
    'Severity',
    'SeverityResolution',
    'StatusPageError',
    'StatusQueries',
    'StatusSnapshot',
    'SystemClock',
    'TemporalState',
    'ValidationError',
    'classify',
    'compute_global_status',
    'compute_service_status',
    'partition',
    'resolve_service_severity',
    'timing',
]

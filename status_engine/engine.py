"""
Status computation for services and for the whole system.

Everything here is a pure function of (services, interventions, now): no I/O,
no caching, no mutation of the inputs. Callers sample ``now`` once per request
and pass the same value to every call.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from .lifecycle import classify
from .models import GlobalStatus, Intervention, Service, ServiceStatus, TemporalState, worst_severity
from .models import normalize_timestamp
from .severity import resolve_service_severity

logger = logging.getLogger(__name__)


def ongoing_only(interventions: Iterable[Intervention], now: datetime) -> List[Intervention]:
    """Keep the interventions that are ongoing at ``now``."""
    now = normalize_timestamp(now, 'now')
    return [i for i in interventions if classify(i, now) is TemporalState.ONGOING]


def compute_service_status(
    service: Service, all_interventions: Iterable[Intervention], now: datetime
) -> ServiceStatus:
    """Compute the status of a single service at ``now``."""
    now = normalize_timestamp(now, 'now')
    relevant = [i for i in all_interventions if i.affects(service.id)]
    resolution = resolve_service_severity(service.id, ongoing_only(relevant, now))
    if resolution is None:
        return ServiceStatus(service=service)
    return ServiceStatus(
        service=service,
        severity=resolution.severity,
        interventions=resolution.interventions,
    )


def compute_service_statuses(
    services: Sequence[Service], all_interventions: Iterable[Intervention], now: datetime
) -> List[ServiceStatus]:
    """Compute every service status, classifying each intervention only once."""
    ongoing = ongoing_only(all_interventions, now)
    return [compute_service_status(service, ongoing, now) for service in services]


def compute_global_status(
    services: Sequence[Service], all_interventions: Iterable[Intervention], now: datetime
) -> GlobalStatus:
    """Compute the top-line status.

    The system is healthy iff every service is healthy; with no services at
    all it is healthy as well.
    """
    now = normalize_timestamp(now, 'now')
    statuses = compute_service_statuses(services, all_interventions, now)
    degraded = tuple(s for s in statuses if s.is_degraded)
    severity = worst_severity(s.severity for s in degraded)
    logger.debug(f"Global status at {now.isoformat()}: {severity.value if severity else 'healthy'} "
                 f"({len(degraded)}/{len(statuses)} services degraded)")
    return GlobalStatus(severity=severity, degraded_services=degraded)

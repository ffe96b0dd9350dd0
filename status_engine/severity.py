"""Severity resolution for services hit by several interventions at once."""

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, Tuple

from .models import Intervention, Severity


@dataclass(frozen=True)
class SeverityResolution:
    """Worst severity affecting a service and every intervention behind it."""
    severity: Severity
    interventions: Tuple[Intervention, ...]


def resolve_service_severity(
    service_id: Hashable, ongoing_interventions: Iterable[Intervention]
) -> Optional[SeverityResolution]:
    """Resolve the severity of a service from the interventions currently ongoing.

    Severities escalate: the result is the maximum severity among matching
    interventions, never an average or the latest one. All matching
    interventions are returned, worst first, then soonest to end.

    Args:
        service_id: Service to resolve
        ongoing_interventions: Interventions already known to be ongoing

    Returns:
        SeverityResolution, or None if no intervention affects the service
    """
    matches = [i for i in ongoing_interventions if i.affects(service_id)]
    if not matches:
        return None

    matches.sort(key=lambda i: (-i.severity.rank, i.end_date))
    return SeverityResolution(severity=matches[0].severity, interventions=tuple(matches))

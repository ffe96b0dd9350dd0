"""
Read-only query façade consumed by the rendering layer.

A ``StatusQueries`` wraps one immutable ``StatusSnapshot`` read from the store
for the duration of a request. Every method takes the request's ``now`` so
that a single response is internally time consistent.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .engine import compute_global_status, compute_service_status, ongoing_only
from .errors import IntegrityError, NotFound
from .lifecycle import InterventionTiming, partition, timing
from .models import (
    Comment,
    GlobalStatus,
    Intervention,
    Service,
    ServiceStatus,
    TemporalState,
)


@dataclass(frozen=True)
class StatusSnapshot:
    """Self-consistent copy of the store's content for one request.

    ``orphan_label`` is set when the store keeps interventions pointing at
    deleted services; those services are then displayed with that label.
    """
    services: Tuple[Service, ...] = ()
    interventions: Tuple[Intervention, ...] = ()
    comments: Tuple[Comment, ...] = ()
    orphan_label: Optional[str] = None

    @classmethod
    def of(cls, services: Iterable[Service] = (), interventions: Iterable[Intervention] = (),
           comments: Iterable[Comment] = (), orphan_label: Optional[str] = None) -> 'StatusSnapshot':
        return cls(
            services=tuple(services),
            interventions=tuple(interventions),
            comments=tuple(comments),
            orphan_label=orphan_label,
        )


@dataclass(frozen=True)
class InterventionView:
    """An intervention joined with its service names, timing and comments."""
    intervention: Intervention
    service_names: Tuple[str, ...]
    timing: InterventionTiming
    comments: Tuple[Comment, ...] = ()

    @property
    def state(self) -> TemporalState:
        return self.timing.state

    def to_dict(self) -> Dict[str, Any]:
        data = self.intervention.to_dict()
        data['services'] = list(self.service_names)
        data['timing'] = self.timing.to_dict()
        data['comments'] = [c.to_dict() for c in self.comments]
        return data


@dataclass(frozen=True)
class ServiceOverview:
    """A service with its current status and the interventions touching it."""
    status: ServiceStatus
    ongoing: Tuple[Intervention, ...]
    upcoming: Tuple[Intervention, ...]

    @property
    def service(self) -> Service:
        return self.status.service


class StatusQueries:
    """Query façade over a single snapshot."""

    def __init__(self, snapshot: StatusSnapshot):
        self.snapshot = snapshot
        self._services = {s.id: s for s in snapshot.services}
        self._interventions = {i.id: i for i in snapshot.interventions}
        self._comments: Dict[Hashable, List[Comment]] = {}
        for comment in snapshot.comments:
            self._comments.setdefault(comment.intervention_id, []).append(comment)
        for comments in self._comments.values():
            comments.sort(key=lambda c: c.date, reverse=True)

    def global_status(self, now: datetime) -> GlobalStatus:
        return compute_global_status(self.snapshot.services, self.snapshot.interventions, now)

    def service_status(self, service_id: Hashable, now: datetime) -> ServiceStatus:
        """Status of one service.

        Raises:
            NotFound: If the service is not part of the snapshot
        """
        service = self._services.get(service_id)
        if service is None:
            raise NotFound('service', service_id)
        return compute_service_status(service, self.snapshot.interventions, now)

    def ongoing_interventions(self, now: datetime) -> List[InterventionView]:
        _, ongoing, _ = partition(self.snapshot.interventions, now)
        return self._views(ongoing, now)

    def upcoming_interventions(self, now: datetime) -> List[InterventionView]:
        upcoming, _, _ = partition(self.snapshot.interventions, now)
        return self._views(upcoming, now)

    def past_interventions(self, now: datetime, limit: Optional[int] = None) -> List[InterventionView]:
        """Past interventions, most recently ended first."""
        _, _, past = partition(self.snapshot.interventions, now)
        if limit is not None:
            past = past[:max(limit, 0)]
        return self._views(past, now)

    def intervention(self, intervention_id: Hashable, now: datetime) -> InterventionView:
        intervention = self._interventions.get(intervention_id)
        if intervention is None:
            raise NotFound('intervention', intervention_id)
        return self._view(intervention, now)

    def services_overview(self, now: datetime) -> List[ServiceOverview]:
        """
        Every service with its status and its ongoing/upcoming interventions.

        Services with ongoing interventions come first (worst severity first),
        then services with upcoming interventions only, then the rest; names
        break ties.
        """
        upcoming, ongoing, _ = partition(self.snapshot.interventions, now)
        overviews = []
        for service in self.snapshot.services:
            status = compute_service_status(service, ongoing, now)
            overviews.append(ServiceOverview(
                status=status,
                ongoing=tuple(i for i in ongoing if i.affects(service.id)),
                upcoming=tuple(i for i in upcoming if i.affects(service.id)),
            ))

        def sort_key(overview: ServiceOverview):
            if overview.ongoing:
                group, rank = 0, -overview.status.severity.rank
            elif overview.upcoming:
                group, rank = 1, 0
            else:
                group, rank = 2, 0
            return group, rank, overview.service.name.lower()

        overviews.sort(key=sort_key)
        return overviews

    def current_interventions_count(self, now: datetime) -> int:
        return len(ongoing_only(self.snapshot.interventions, now))

    def _views(self, interventions: Sequence[Intervention], now: datetime) -> List[InterventionView]:
        return [self._view(i, now) for i in interventions]

    def _view(self, intervention: Intervention, now: datetime) -> InterventionView:
        return InterventionView(
            intervention=intervention,
            service_names=self._service_names(intervention),
            timing=timing(intervention, now),
            comments=tuple(self._comments.get(intervention.id, ())),
        )

    def _service_names(self, intervention: Intervention) -> Tuple[str, ...]:
        names = []
        for service_id in intervention.affected_services:
            service = self._services.get(service_id)
            if service is not None:
                names.append(service.name)
            elif self.snapshot.orphan_label is not None:
                names.append(self.snapshot.orphan_label)
            else:
                raise IntegrityError(
                    f"intervention {intervention.id!r} references unknown service {service_id!r}"
                )
        return tuple(sorted(names, key=str.lower))

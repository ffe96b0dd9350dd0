"""Domain models for services, interventions and derived statuses."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, FrozenSet, Hashable, Iterable, Optional, Tuple
from urllib.parse import urlparse

from .errors import ValidationError


@total_ordering
class Severity(Enum):
    """Degradation level of an intervention, declared from least to worst."""
    PERFORMANCE_ISSUE = "performance_issue"
    PARTIAL_OUTAGE = "partial_outage"
    FULL_OUTAGE = "full_outage"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: str) -> 'Severity':
        """Parse a stored value or its dashed form ('full-outage')."""
        if isinstance(value, Severity):
            return value
        normalized = str(value).strip().lower().replace('-', '_')
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError('severity', f"unknown severity {value!r}") from None


_SEVERITY_RANKS = {severity: rank for rank, severity in enumerate(Severity)}


class InterventionStatus(Enum):
    """Progress of an intervention as reported by the operators.

    Display only: the temporal state is always derived from the window.
    """
    PLANNED = "planned"
    ONGOING = "ongoing"
    IDENTIFIED = "identified"
    UNDER_SURVEILLANCE = "under_surveillance"
    RESOLVED = "resolved"

    @property
    def label(self) -> str:
        return self.value.replace('_', ' ').capitalize()

    @classmethod
    def parse(cls, value) -> 'InterventionStatus':
        if isinstance(value, InterventionStatus):
            return value
        normalized = str(value).strip().lower().replace('-', '_').replace(' ', '_')
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError('status', f"unknown status {value!r}") from None


class TemporalState(Enum):
    """Position of an intervention relative to the query instant."""
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    PAST = "past"


def normalize_timestamp(value: datetime, field_name: str) -> datetime:
    """Return value as a naive UTC datetime."""
    if not isinstance(value, datetime):
        raise ValidationError(field_name, "must be a datetime")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _require_text(value, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field_name, "must not be empty")
    return value.strip()


@dataclass(frozen=True)
class Service:
    """A monitored service shown on the public page."""
    id: Hashable
    name: str
    url: str

    def __post_init__(self):
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))
        url = _require_text(self.url, 'url')
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError('url', f"must be an absolute URL, got {url!r}")
        object.__setattr__(self, 'url', url)

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'url': self.url}


@dataclass(frozen=True)
class Intervention:
    """A planned maintenance or an unplanned outage affecting services.

    The temporal state is never stored here; see ``lifecycle.classify``.
    """
    id: Hashable
    title: str
    start_date: datetime
    end_date: datetime
    severity: Severity
    affected_services: FrozenSet[Hashable]
    description: str = ""
    is_planned: bool = False
    status: Optional[InterventionStatus] = None

    def __post_init__(self):
        object.__setattr__(self, 'title', _require_text(self.title, 'title'))
        object.__setattr__(self, 'description', (self.description or "").strip())

        start = normalize_timestamp(self.start_date, 'start_date')
        end = normalize_timestamp(self.end_date, 'end_date')
        if end <= start:
            raise ValidationError('end_date', "must be strictly after start_date")
        object.__setattr__(self, 'start_date', start)
        object.__setattr__(self, 'end_date', end)

        object.__setattr__(self, 'severity', Severity.parse(self.severity))

        object.__setattr__(self, 'is_planned', bool(self.is_planned))
        if self.status is not None:
            object.__setattr__(self, 'status', InterventionStatus.parse(self.status))

        if isinstance(self.affected_services, (str, bytes)):
            raise ValidationError('affected_services', "must be a collection of service ids, not a single id")
        affected = frozenset(self.affected_services or ())
        if not affected:
            raise ValidationError('affected_services', "at least one service is required")
        object.__setattr__(self, 'affected_services', affected)

    @property
    def duration(self) -> timedelta:
        return self.end_date - self.start_date

    def affects(self, service_id: Hashable) -> bool:
        return service_id in self.affected_services

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'severity': self.severity.value,
            'affected_services': _sorted_ids(self.affected_services),
            'is_planned': self.is_planned,
            'status': self.status.value if self.status else None,
        }



def _sorted_ids(ids: Iterable[Hashable]) -> list:
    """Sort ids naturally when they share a type, by their text otherwise."""
    ids = list(ids)
    if len({type(i) for i in ids}) <= 1:
        return sorted(ids)
    return sorted(ids, key=str)

@dataclass(frozen=True)
class Comment:
    """A dated status update posted on an intervention."""
    id: Hashable
    intervention_id: Hashable
    date: datetime
    description: str

    def __post_init__(self):
        object.__setattr__(self, 'date', normalize_timestamp(self.date, 'date'))
        object.__setattr__(self, 'description', _require_text(self.description, 'description'))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'description': self.description,
        }


@dataclass(frozen=True)
class ServiceStatus:
    """Status of one service at one instant.

    ``severity`` is None when the service is healthy; otherwise it is the
    worst severity among ``interventions``, the ongoing interventions
    affecting the service.
    """
    service: Service
    severity: Optional[Severity] = None
    interventions: Tuple[Intervention, ...] = ()

    @property
    def is_healthy(self) -> bool:
        return self.severity is None

    @property
    def is_degraded(self) -> bool:
        return self.severity is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'service': self.service.to_dict(),
            'healthy': self.is_healthy,
            'severity': self.severity.value if self.severity else None,
            'interventions': [i.id for i in self.interventions],
        }


@dataclass(frozen=True)
class GlobalStatus:
    """Top-line status: worst severity across every service."""
    severity: Optional[Severity] = None
    degraded_services: Tuple[ServiceStatus, ...] = field(default_factory=tuple)

    @property
    def is_healthy(self) -> bool:
        return self.severity is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'healthy': self.is_healthy,
            'severity': self.severity.value if self.severity else None,
            'degraded_services': [s.service.id for s in self.degraded_services],
        }


def worst_severity(severities: Iterable[Optional[Severity]]) -> Optional[Severity]:
    """Return the worst severity, ignoring None; None when nothing remains."""
    present = [s for s in severities if s is not None]
    return max(present) if present else None

"""
Lifecycle classification of interventions.

An intervention is never stored with a state: it is Upcoming, Ongoing or Past
only relative to the instant it is looked at. Both window boundaries belong
to the Ongoing state.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Intervention, TemporalState, normalize_timestamp


@dataclass(frozen=True)
class InterventionTiming:
    """Temporal state of an intervention plus the durations shown publicly."""
    state: TemporalState
    elapsed: Optional[timedelta] = None
    remaining: Optional[timedelta] = None
    time_to_start: Optional[timedelta] = None

    @property
    def progress(self) -> Optional[float]:
        """Fraction of the window already elapsed, for ongoing interventions."""
        if self.elapsed is None or self.remaining is None:
            return None
        total = self.elapsed + self.remaining
        return self.elapsed / total if total else 1.0

    def to_dict(self) -> Dict[str, Any]:
        def seconds(delta):
            return delta.total_seconds() if delta is not None else None

        return {
            'state': self.state.value,
            'elapsed_seconds': seconds(self.elapsed),
            'remaining_seconds': seconds(self.remaining),
            'time_to_start_seconds': seconds(self.time_to_start),
            'progress': self.progress,
        }


def classify(intervention: Intervention, now: datetime) -> TemporalState:
    """Return the temporal state of an intervention at ``now``."""
    now = normalize_timestamp(now, 'now')
    if now < intervention.start_date:
        return TemporalState.UPCOMING
    if now > intervention.end_date:
        return TemporalState.PAST
    return TemporalState.ONGOING


def timing(intervention: Intervention, now: datetime) -> InterventionTiming:
    """Classify an intervention and compute the durations relevant to its state."""
    now = normalize_timestamp(now, 'now')
    state = classify(intervention, now)
    if state is TemporalState.ONGOING:
        return InterventionTiming(
            state=state,
            elapsed=now - intervention.start_date,
            remaining=intervention.end_date - now,
        )
    if state is TemporalState.UPCOMING:
        return InterventionTiming(state=state, time_to_start=intervention.start_date - now)
    return InterventionTiming(state=state)


def partition(
    interventions: Iterable[Intervention], now: datetime
) -> Tuple[List[Intervention], List[Intervention], List[Intervention]]:
    """
    Split interventions into (upcoming, ongoing, past) buckets.

    Ordering:
        upcoming: soonest start first
        ongoing: soonest end first
        past: most recently ended first

    Sorting is stable, so interventions with equal keys keep their input order.
    """
    now = normalize_timestamp(now, 'now')
    upcoming, ongoing, past = [], [], []
    buckets = {
        TemporalState.UPCOMING: upcoming,
        TemporalState.ONGOING: ongoing,
        TemporalState.PAST: past,
    }
    for intervention in interventions:
        buckets[classify(intervention, now)].append(intervention)

    upcoming.sort(key=lambda i: i.start_date)
    ongoing.sort(key=lambda i: i.end_date)
    past.sort(key=lambda i: i.end_date, reverse=True)
    return upcoming, ongoing, past

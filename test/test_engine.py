"""
Tests for service and global status computation, including the end-to-end
scenarios of the public page.
"""

from datetime import datetime, timedelta, timezone

import pytest

from status_engine import (
    Intervention,
    Service,
    Severity,
    compute_global_status,
    compute_service_status,
)

FRAMASPHERE = Service(id=1, name="Framasphère", url="https://diaspora-fr.org")
FRAMATHUNES = Service(id=2, name="Framathunes", url="https://kresus.org")

KERNEL_UPDATE = Intervention(
    id=10,
    title="Mise à jour du noyau",
    description="Redémarrage des serveurs",
    start_date=datetime(2025, 2, 13, 8, 0),
    end_date=datetime(2025, 2, 13, 8, 15),
    severity=Severity.FULL_OUTAGE,
    affected_services=frozenset({FRAMASPHERE.id}),
)


def window(id, severity, services, start, end):
    return Intervention(
        id=id,
        title=f"Intervention {id}",
        start_date=start,
        end_date=end,
        severity=severity,
        affected_services=frozenset(services),
    )


class TestScenarios:
    """End-to-end scenarios on a fixed instant."""

    def test_service_without_interventions_is_healthy(self):
        status = compute_service_status(FRAMASPHERE, [], datetime(2025, 2, 13, 8, 5))

        assert status.is_healthy
        assert status.severity is None
        assert status.interventions == ()

    def test_full_outage_during_kernel_update(self):
        now = datetime(2025, 2, 13, 8, 5)

        status = compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], now)
        global_status = compute_global_status([FRAMASPHERE, FRAMATHUNES], [KERNEL_UPDATE], now)

        assert status.is_degraded
        assert status.severity is Severity.FULL_OUTAGE
        assert status.interventions == (KERNEL_UPDATE,)
        assert global_status.severity is Severity.FULL_OUTAGE
        assert [s.service for s in global_status.degraded_services] == [FRAMASPHERE]

    def test_healthy_again_after_kernel_update(self):
        now = datetime(2025, 2, 13, 9, 0)

        status = compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], now)
        global_status = compute_global_status([FRAMASPHERE], [KERNEL_UPDATE], now)

        assert status.is_healthy
        assert global_status.is_healthy

    def test_overlapping_interventions_escalate(self):
        now = datetime(2025, 2, 13, 8, 5)
        slow = window('slow', Severity.PERFORMANCE_ISSUE, {1}, now - timedelta(hours=1), now + timedelta(hours=1))
        partial = window('partial', Severity.PARTIAL_OUTAGE, {1}, now - timedelta(minutes=1), now + timedelta(minutes=30))

        status = compute_service_status(FRAMASPHERE, [slow, partial], now)

        assert status.severity is Severity.PARTIAL_OUTAGE
        assert set(i.id for i in status.interventions) == {'slow', 'partial'}


class TestServiceStatus:

    def test_upcoming_intervention_does_not_degrade(self):
        now = datetime(2025, 2, 13, 7, 59)
        assert compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], now).is_healthy

    def test_other_service_interventions_are_ignored(self):
        now = datetime(2025, 2, 13, 8, 5)
        assert compute_service_status(FRAMATHUNES, [KERNEL_UPDATE], now).is_healthy

    def test_same_inputs_give_same_output(self):
        now = datetime(2025, 2, 13, 8, 5)
        first = compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], now)
        second = compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], now)
        assert first == second


class TestGlobalStatus:

    @pytest.mark.parametrize('now', [
        datetime(1970, 1, 1),
        datetime(2025, 2, 13, 8, 5),
        datetime(2999, 12, 31, 23, 59),
    ])
    def test_no_services_is_healthy(self, now):
        status = compute_global_status([], [], now)

        assert status.is_healthy
        assert status.degraded_services == ()

    def test_worst_service_wins(self):
        now = datetime(2025, 2, 13, 8, 5)
        start, end = now - timedelta(minutes=5), now + timedelta(minutes=5)
        interventions = [
            window('a', Severity.PERFORMANCE_ISSUE, {1}, start, end),
            window('b', Severity.PARTIAL_OUTAGE, {2}, start, end),
        ]

        status = compute_global_status([FRAMASPHERE, FRAMATHUNES], interventions, now)

        assert status.severity is Severity.PARTIAL_OUTAGE
        assert len(status.degraded_services) == 2

    def test_one_intervention_on_several_services(self):
        now = datetime(2025, 2, 13, 8, 5)
        shared = window('shared', Severity.FULL_OUTAGE, {1, 2}, now, now + timedelta(minutes=1))

        status = compute_global_status([FRAMASPHERE, FRAMATHUNES], [shared], now)

        assert status.severity is Severity.FULL_OUTAGE
        assert {s.service.id for s in status.degraded_services} == {1, 2}

    def test_inputs_are_not_mutated(self):
        now = datetime(2025, 2, 13, 8, 5)
        services = [FRAMASPHERE]
        interventions = [KERNEL_UPDATE]

        compute_global_status(services, interventions, now)

        assert services == [FRAMASPHERE]
        assert interventions == [KERNEL_UPDATE]

    def test_to_dict(self):
        status = compute_global_status([FRAMASPHERE], [KERNEL_UPDATE], datetime(2025, 2, 13, 8, 5))
        assert status.to_dict() == {
            'healthy': False,
            'severity': 'full_outage',
            'degraded_services': [1],
        }


class TestAwareNow:
    """A timezone-aware ``now`` gives the same result as the naive UTC instant."""

    PARIS = timezone(timedelta(hours=1))

    def test_service_status_with_aware_now(self):
        aware = datetime(2025, 2, 13, 9, 5, tzinfo=self.PARIS)

        status = compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], aware)

        assert status == compute_service_status(FRAMASPHERE, [KERNEL_UPDATE], datetime(2025, 2, 13, 8, 5))
        assert status.severity is Severity.FULL_OUTAGE

    def test_global_status_with_aware_now(self):
        during = datetime(2025, 2, 13, 8, 5, tzinfo=timezone.utc)
        after = datetime(2025, 2, 13, 10, 0, tzinfo=self.PARIS)

        assert compute_global_status([FRAMASPHERE], [KERNEL_UPDATE], during).severity is Severity.FULL_OUTAGE
        assert compute_global_status([FRAMASPHERE], [KERNEL_UPDATE], after).is_healthy

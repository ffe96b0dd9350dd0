"""
Presentation mapping for the public page.

Labels, CSS classes and JSON shapes live here so the status engine stays
unaware of how its results are displayed.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from status_engine import GlobalStatus, InterventionView, ServiceStatus, Severity
from status_engine.queries import ServiceOverview

SEVERITY_LABELS = {
    Severity.PERFORMANCE_ISSUE: "Performance issue",
    Severity.PARTIAL_OUTAGE: "Partial outage",
    Severity.FULL_OUTAGE: "Full outage",
}

SEVERITY_CSS_CLASSES = {
    Severity.PERFORMANCE_ISSUE: "performance-issue",
    Severity.PARTIAL_OUTAGE: "partial-outage",
    Severity.FULL_OUTAGE: "full-outage",
}

HEALTHY_LABEL = "All systems operational"


def severity_label(severity: Optional[Severity]) -> str:
    if severity is None:
        return HEALTHY_LABEL
    return SEVERITY_LABELS[severity]


def severity_css_class(severity: Optional[Severity]) -> str:
    if severity is None:
        return "operational"
    return SEVERITY_CSS_CLASSES[severity]


def section_class(overview: ServiceOverview) -> str:
    """CSS class of a service section.

    error: an unplanned outage is ongoing
    info: only planned maintenance is ongoing
    warning: maintenance is upcoming
    success: nothing to report
    """
    if any(not i.is_planned for i in overview.ongoing):
        return "error"
    if overview.ongoing:
        return "info"
    if overview.upcoming:
        return "warning"
    return "success"


def render_global_status(status: GlobalStatus) -> Dict[str, Any]:
    data = status.to_dict()
    data['label'] = severity_label(status.severity)
    data['css_class'] = severity_css_class(status.severity)
    return data


def render_service_status(status: ServiceStatus, now: datetime) -> Dict[str, Any]:
    data = status.to_dict()
    data['label'] = "Operational" if status.is_healthy else severity_label(status.severity)
    data['css_class'] = severity_css_class(status.severity)
    data['now'] = now.isoformat()
    return data


def render_intervention(view: InterventionView) -> Dict[str, Any]:
    data = view.to_dict()
    data['severity_label'] = severity_label(view.intervention.severity)
    data['severity_class'] = severity_css_class(view.intervention.severity)
    status = view.intervention.status
    data['status_label'] = status.label if status else None
    return data


def render_interventions(views: List[InterventionView]) -> List[Dict[str, Any]]:
    return [render_intervention(view) for view in views]


def render_service_overview(overview: ServiceOverview) -> Dict[str, Any]:
    def short(intervention):
        return {
            'id': intervention.id,
            'title': intervention.title,
            'start_date': intervention.start_date.isoformat(),
            'end_date': intervention.end_date.isoformat(),
            'severity': intervention.severity.value,
            'is_planned': intervention.is_planned,
            'status': intervention.status.value if intervention.status else None,
        }

    status = overview.status
    return {
        'id': overview.service.id,
        'name': overview.service.name,
        'url': overview.service.url,
        'severity': status.severity.value if status.severity else None,
        'label': "Operational" if status.is_healthy else severity_label(status.severity),
        'section_class': section_class(overview),
        'unplanned_outage': any(not i.is_planned for i in overview.ongoing),
        'ongoing': [short(i) for i in overview.ongoing],
        'upcoming': [short(i) for i in overview.upcoming],
    }

"""
OEE Monitor - Downtime Classification

Downtime reasons carry a free-text category from the reason taxonomy. Only the
exact literal ``"Unplanned"`` counts against availability; every other value,
including a missing or unknown category, is treated as planned downtime.
"""

from typing import Iterable, List, Optional, Tuple, Union

from oee_monitor.models.oee import DowntimeCategory, DowntimeInterval

UNPLANNED_CATEGORY = "Unplanned"


def classify_downtime(event: Union[DowntimeInterval, str, None]) -> DowntimeCategory:
    """Classify a downtime event, or a bare reason category string."""
    reason_category: Optional[str]
    if isinstance(event, DowntimeInterval):
        reason_category = event.reason_category
    else:
        reason_category = event

    # case-sensitive on purpose, "unplanned" is not the taxonomy literal
    if reason_category == UNPLANNED_CATEGORY:
        return DowntimeCategory.UNPLANNED
    return DowntimeCategory.PLANNED


def is_unplanned(event: Union[DowntimeInterval, str, None]) -> bool:
    return classify_downtime(event) == DowntimeCategory.UNPLANNED


def partition_downtime(
    events: Iterable[DowntimeInterval]
) -> Tuple[List[DowntimeInterval], List[DowntimeInterval]]:
    """Split events into ``(planned, unplanned)`` keeping their input order."""
    planned: List[DowntimeInterval] = []
    unplanned: List[DowntimeInterval] = []
    for event in events:
        if is_unplanned(event):
            unplanned.append(event)
        else:
            planned.append(event)
    return planned, unplanned

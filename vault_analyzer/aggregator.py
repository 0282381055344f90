"""Incident aggregation in one pass over audit events, grouped by signature."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable

from vault_analyzer.parser import AuditEvent, extract_event
from vault_analyzer.signature import build_signature

logger = logging.getLogger(__name__)


@dataclass
class IncidentStats:
    signature: str
    path: str
    error: str
    first_seen: datetime
    last_seen: datetime
    count: int = 1
    sources: set[str] = field(default_factory=set)

    @property
    def duration(self) -> timedelta:
        return self.last_seen - self.first_seen

    def sorted_sources(self) -> list[str]:
        return sorted(self.sources)


class IncidentAggregator:
    """Running signature -> IncidentStats mapping plus path/error counters.

    The raw error stored on an incident is the text of the first event seen
    with that signature. The counters are bumped once per event, so they
    cover every failure, not one per signature.
    """

    def __init__(self):
        self.incidents: dict[str, IncidentStats] = {}
        self.path_counts: Counter = Counter()
        self.error_counts: Counter = Counter()
        self.total_events = 0

    def observe(self, event: AuditEvent) -> IncidentStats:
        sig = build_signature(event.path, event.error)
        stats = self.incidents.get(sig)

        if stats is None:
            stats = IncidentStats(
                signature=sig,
                path=event.path,
                error=event.error,
                first_seen=event.timestamp,
                last_seen=event.timestamp,
            )
            self.incidents[sig] = stats
        else:
            stats.count += 1
            if event.timestamp < stats.first_seen:
                stats.first_seen = event.timestamp
            if event.timestamp > stats.last_seen:
                stats.last_seen = event.timestamp

        if event.remote_address:
            stats.sources.add(event.remote_address)

        self.path_counts[event.path] += 1
        self.error_counts[event.error] += 1
        self.total_events += 1
        return stats

    def consume(self, events: Iterable[AuditEvent]) -> "IncidentAggregator":
        for event in events:
            self.observe(event)
        return self

    def sorted_incidents(self) -> list[IncidentStats]:
        """Incidents by count descending; equal counts by signature."""
        return sorted(
            self.incidents.values(),
            key=lambda s: (-s.count, s.signature),
        )

    def top_paths(self, n: int) -> list[tuple[str, int]]:
        return _top(self.path_counts, n)

    def top_errors(self, n: int) -> list[tuple[str, int]]:
        return _top(self.error_counts, n)


def _top(counter: Counter, n: int) -> list[tuple[str, int]]:
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    return ranked[:n]


def analyze_lines(lines: Iterable[str]) -> IncidentAggregator:
    """Run extraction and aggregation over a stream of raw log lines."""
    events = (extract_event(line) for line in lines)
    aggregator = IncidentAggregator().consume(e for e in events if e is not None)
    logger.info(
        "Aggregated %d failure events into %d incidents",
        aggregator.total_events, len(aggregator.incidents),
    )
    return aggregator

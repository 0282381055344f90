"""Report rendering: incident blocks, executive summary, text and JSON."""

import json
from dataclasses import dataclass, field
from datetime import timedelta

from vault_analyzer.aggregator import IncidentAggregator, IncidentStats
from vault_analyzer.rules import Rule, match_advice

WIDTH = 80
LABEL_WIDTH = 12
TIME_FORMAT = "%H:%M:%S"

CATEGORY_PREFIXES = (
    ("sys/", "SYS"),
    ("auth/", "AUTH"),
)
DEFAULT_CATEGORY = "DATA"

# Durations saturate at the largest signed 64-bit nanosecond count.
MAX_DURATION = timedelta(microseconds=(2**63 - 1) // 1_000)
MAX_DURATION_TEXT = "2562047h47m16.854775807s"


@dataclass(frozen=True)
class IncidentReport:
    incident: IncidentStats
    category: str
    advice: str


@dataclass
class Report:
    incidents: list[IncidentReport] = field(default_factory=list)
    top_paths: list[tuple[str, int]] = field(default_factory=list)
    top_errors: list[tuple[str, int]] = field(default_factory=list)
    rules_source: str = "none"


def categorize(path: str) -> str:
    for prefix, category in CATEGORY_PREFIXES:
        if path.startswith(prefix):
            return category
    return DEFAULT_CATEGORY


def clean_for_display(text: str) -> str:
    """Collapse newlines, tabs and whitespace runs to single spaces."""
    return " ".join(text.split())


def _trim_fraction(whole: int, frac: int, digits: int) -> str:
    if not frac:
        return str(whole)
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def format_duration(delta: timedelta) -> str:
    """Compact duration string, e.g. 0s, 750ms, 1m30s, 2h0m5s."""
    if delta >= MAX_DURATION:
        return MAX_DURATION_TEXT
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros == 0:
        return "0s"
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        ms, rem = divmod(micros, 1_000)
        return f"{sign}{_trim_fraction(ms, rem, 3)}ms"

    hours, rem = divmod(micros, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    seconds = _trim_fraction(*divmod(rem, 1_000_000), 6)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def build_report(
    aggregator: IncidentAggregator,
    rules: list[Rule],
    top_paths: int = 3,
    top_errors: int = 5,
    rules_source: str = "none",
) -> Report:
    """Sort incidents, attach category and advice, and pick the top-N lists."""
    incidents = [
        IncidentReport(
            incident=inc,
            category=categorize(inc.path),
            advice=match_advice(inc.path, inc.error, rules),
        )
        for inc in aggregator.sorted_incidents()
    ]
    return Report(
        incidents=incidents,
        top_paths=aggregator.top_paths(top_paths),
        top_errors=aggregator.top_errors(top_errors),
        rules_source=rules_source,
    )


def _field(label: str, value) -> str:
    return f"{label:<{LABEL_WIDTH}} {value}"


def format_incident_text(item: IncidentReport) -> str:
    inc = item.incident
    timeframe = "{} -> {} ({})".format(
        inc.first_seen.strftime(TIME_FORMAT),
        inc.last_seen.strftime(TIME_FORMAT),
        format_duration(inc.duration),
    )
    sources = "[" + ", ".join(inc.sorted_sources()) + "]"
    return "\n".join([
        _field("CATEGORY:", f"[{item.category}]"),
        _field("COUNT:", inc.count),
        _field("PATH:", inc.path),
        _field("ERROR:", clean_for_display(inc.error)),
        _field("TIMEFRAME:", timeframe),
        _field("SOURCES:", sources),
        _field("ANALYSIS:", item.advice),
        "-" * WIDTH,
    ])


def _summary_records(pairs: list[tuple[str, int]], key_name: str) -> list[dict]:
    return [{key_name: key, "Count": count} for key, count in pairs]


def format_summary_text(report: Report) -> str:
    lines = ["", "EXECUTIVE SUMMARY", "=" * WIDTH]

    lines.append("TOP FAILING PATHS (JSON):")
    for record in _summary_records(report.top_paths, "Path"):
        lines.append(json.dumps(record, indent=2))
    lines.append("")

    lines.append("TOP ERROR TYPES (JSON):")
    for record in _summary_records(report.top_errors, "Errors"):
        lines.append(json.dumps(record, indent=2))
    lines.append("=" * WIDTH)
    return "\n".join(lines)


def format_report_text(report: Report) -> str:
    """Human-readable report: one block per incident, then the summary."""
    lines = ["VAULT AUDIT ANALYSIS REPORT", "=" * WIDTH]
    for item in report.incidents:
        lines.append(format_incident_text(item))
    lines.append(format_summary_text(report))
    return "\n".join(lines)


def format_report_json(report: Report) -> str:
    """Whole report as a single JSON document."""
    incidents = []
    for item in report.incidents:
        inc = item.incident
        incidents.append({
            "category": item.category,
            "count": inc.count,
            "path": inc.path,
            "error": inc.error,
            "signature": inc.signature,
            "first_seen": inc.first_seen.isoformat(),
            "last_seen": inc.last_seen.isoformat(),
            "duration_seconds": min(inc.duration, MAX_DURATION).total_seconds(),
            "sources": inc.sorted_sources(),
            "advice": item.advice,
        })
    return json.dumps({
        "incidents": incidents,
        "summary": {
            "top_paths": _summary_records(report.top_paths, "Path"),
            "top_errors": _summary_records(report.top_errors, "Errors"),
        },
        "rules_source": report.rules_source,
    }, indent=2)

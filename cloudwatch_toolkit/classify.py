"""
Name-based heuristics for CloudWatch alarms: noise exclusion, severity
routing, and estimating how long an alarm has been in its current state.
"""
import json
import logging
import datetime as dt
from typing import Any, Dict, Iterable, List, Optional, Union

from dateutil import parser as date_parser

from . import config

logger = logging.getLogger(__name__)

UTC = dt.timezone.utc


# ---- Exclusion ----
def is_excluded(alarm_name: str, patterns: Optional[Iterable[str]] = None) -> bool:
    patterns = config.EXCLUDED_ALARM_NAME_PATTERNS if patterns is None else patterns
    return any(p in (alarm_name or "") for p in patterns)


def filter_by_name(alarms: Iterable[Dict], patterns: Optional[Iterable[str]] = None) -> List[Dict]:
    return [a for a in alarms if not is_excluded(a.get("AlarmName", ""), patterns)]


# ---- Severity ----
def severity(alarm_name: str, channels: Optional[Dict[str, str]] = None) -> Optional[str]:
    channels = config.SEVERITY_CHANNELS if channels is None else channels
    for prefix in channels:
        if (alarm_name or "").startswith(prefix):
            return prefix
    return None


def channel(alarm_name: str, channels: Optional[Dict[str, str]] = None, default: Optional[str] = None) -> str:
    """Slack destination for an alarm, based on the severity prefix of its name."""
    channels = config.SEVERITY_CHANNELS if channels is None else channels
    sev = severity(alarm_name, channels)
    if sev is None:
        return config.DEFAULT_CHANNEL_ID if default is None else default
    return channels[sev]


# ---- Duration ----
def parse_ts(value: Any) -> Optional[dt.datetime]:
    if isinstance(value, dt.datetime):
        ts = value
    elif isinstance(value, str) and value:
        try:
            ts = date_parser.isoparse(value)
        except ValueError:
            try:
                ts = date_parser.parse(value)
            except (ValueError, OverflowError):
                return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def reason_data(raw: Union[str, Dict, None]) -> Optional[Dict]:
    """StateReasonData arrives as a JSON string on describe_alarms and in events."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unparseable StateReasonData: {e}")
        return None
    return data if isinstance(data, dict) else None


def started_at(data: Optional[Dict]) -> Optional[dt.datetime]:
    """
    When the current state began: an explicit `startDate` if the payload has
    one, otherwise the most recent evaluated datapoint.
    """
    if not data:
        return None
    if data.get("startDate"):
        return parse_ts(data["startDate"])
    stamps = [parse_ts(d.get("timestamp")) for d in data.get("evaluatedDatapoints") or [] if isinstance(d, dict)]
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else None


def estimate_duration(data: Union[str, Dict, None], now: Optional[dt.datetime] = None) -> Optional[float]:
    """Seconds since the alarm's state began, or None when it can't be told."""
    start = started_at(reason_data(data))
    if start is None:
        return None
    now = parse_ts(now) if now is not None else dt.datetime.now(UTC)
    return (now - start).total_seconds()


def humanize_duration(seconds: float) -> str:
    seconds = max(0, seconds)
    for size, unit in ((86400, "days"), (3600, "hours"), (60, "minutes")):
        if seconds >= size:
            return f"{int(seconds / size + 0.5)} {unit}"
    return f"{int(seconds + 0.5)} seconds"


def inject_duration(alarm: Dict, now: Optional[dt.datetime] = None) -> Dict:
    alarm["EstimatedDuration"] = estimate_duration(alarm.get("StateReasonData"), now)
    return alarm


def long_running(alarms: Iterable[Dict], threshold: Optional[float] = None) -> List[Dict]:
    """Keeps alarms open longer than `threshold` seconds, and any whose duration is unknown."""
    threshold = config.LONG_RUNNING_THRESHOLD_SECONDS if threshold is None else threshold
    out = []
    for a in alarms:
        d = a.get("EstimatedDuration")
        if d is None or d > threshold:
            out.append(a)
    return out


def sort_by_duration(alarms: Iterable[Dict]) -> List[Dict]:
    """Longest first; alarms with no known duration go ahead of all of them."""
    def key(a):
        d = a.get("EstimatedDuration")
        return (0, 0.0) if d is None else (1, -d)

    return sorted(alarms, key=key)

"""
Detail lines for a single alarm state change.

Builders are looked up by (new state, alarm shape). An alarm's shape is
`single` when its configuration has exactly one metric; anything else
(metric math, composite alarms) is `multi`, which only gets a placeholder
line. Every combination has an entry in DETAIL_BUILDERS.
"""
import datetime as dt
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from . import config, urls
from .classify import estimate_duration, humanize_duration, parse_ts
from .log_groups import log_group_name
from .models import NotificationEvent
from .render import link

SINGLE = "single"
MULTI = "multi"

COMPARISONS = {
    "GreaterThanOrEqualToThreshold": "&gt;=",
    "GreaterThanThreshold": "&gt;",
    "LessThanThreshold": "&lt;",
    "LessThanOrEqualToThreshold": "&lt;=",
    "LessThanLowerOrGreaterThanUpperThreshold": "outside the band",
    "LessThanLowerThreshold": "below the band",
    "GreaterThanUpperThreshold": "above the band",
}


class AlarmContext(NamedTuple):
    event: NotificationEvent
    alarm: Dict
    tags: Dict[str, str]
    history: List[Dict]
    log_group: Optional[str]
    now: dt.datetime


def shape(event: NotificationEvent) -> str:
    return SINGLE if len(event.metrics) == 1 else MULTI


def to_alarm_times(history: List[Dict]) -> List[dt.datetime]:
    """Timestamps of transitions into ALARM, oldest first."""
    times = [parse_ts(i.get("Timestamp")) for i in history if "to ALARM" in (i.get("HistorySummary") or "")]
    return sorted(t for t in times if t is not None)


def _format_number(value) -> str:
    try:
        return f"{float(value):g}"
    except (TypeError, ValueError):
        return str(value)


def threshold_line(alarm: Dict) -> Optional[str]:
    metric = alarm.get("MetricName")
    if not metric:
        return None
    stat = alarm.get("Statistic") or alarm.get("ExtendedStatistic") or "Value"
    op = COMPARISONS.get(alarm.get("ComparisonOperator", ""), alarm.get("ComparisonOperator", "?"))
    if alarm.get("ThresholdMetricId"):
        limit = f"`{alarm['ThresholdMetricId']}`"
    else:
        limit = f"`{_format_number(alarm.get('Threshold'))}`"
    periods = alarm.get("EvaluationPeriods") or 1
    datapoints = alarm.get("DatapointsToAlarm") or periods
    period = alarm.get("Period") or 60
    return (
        f"*Threshold:* {stat} of `{metric}` {op} {limit} "
        f"for {datapoints} of {periods} period(s) of {humanize_duration(period)}"
    )


def _history_line(ctx: AlarmContext) -> str:
    count = len(to_alarm_times(ctx.history))
    return f"*Last {config.NOTIFICATION_HISTORY_HOURS} hours:* {count} transition(s) to `ALARM`"


def _link_lines(ctx: AlarmContext) -> List[str]:
    lines = []
    region = ctx.event.region
    if ctx.alarm.get("MetricName"):
        graph = urls.metric_graph(ctx.alarm, region, to_alarm_times(ctx.history), config.NOTIFICATION_HISTORY_HOURS)
        lines.append(f"*Metric:* {link(urls.sso_deep_link(ctx.event.account, graph), ctx.alarm['MetricName'])}")
    if ctx.log_group:
        logs = urls.log_group_console(ctx.log_group, region)
        lines.append(f"*Logs:* {link(urls.sso_deep_link(ctx.event.account, logs), ctx.log_group)}")
    return lines


def _alarm_single(ctx: AlarmContext) -> List[str]:
    lines = []
    threshold = threshold_line(ctx.alarm)
    if threshold:
        lines.append(threshold)
    if ctx.event.reason:
        lines.append(f"*Cause:* {ctx.event.reason}")
    duration = estimate_duration(ctx.event.reason_data, ctx.now)
    if duration is not None:
        lines.append(f"*Started:* {humanize_duration(duration)} ago")
    lines.extend(_link_lines(ctx))
    lines.append(_history_line(ctx))
    return lines


def _ok_single(ctx: AlarmContext) -> List[str]:
    lines = []
    times = to_alarm_times(ctx.history)
    recovered_at = parse_ts(ctx.event.timestamp) or ctx.now
    if times and times[-1] <= recovered_at:
        lasted = (recovered_at - times[-1]).total_seconds()
        lines.append(f"*Recovered:* after {humanize_duration(lasted)} in `ALARM`")
    elif ctx.event.previous_state:
        lines.append(f"*Recovered:* from `{ctx.event.previous_state}`")
    if ctx.event.reason:
        lines.append(f"*Reason:* {ctx.event.reason}")
    lines.extend(_link_lines(ctx))
    lines.append(_history_line(ctx))
    return lines


def _insufficient_data(ctx: AlarmContext) -> List[str]:
    return ["Details not implemented for `INSUFFICIENT_DATA`"]


def _unsupported(ctx: AlarmContext) -> List[str]:
    return ["Unknown alarm metric type!"]


DETAIL_BUILDERS: Dict[Tuple[str, str], Callable[[AlarmContext], List[str]]] = {
    ("ALARM", SINGLE): _alarm_single,
    ("ALARM", MULTI): _unsupported,
    ("OK", SINGLE): _ok_single,
    ("OK", MULTI): _unsupported,
    ("INSUFFICIENT_DATA", SINGLE): _insufficient_data,
    ("INSUFFICIENT_DATA", MULTI): _insufficient_data,
}


def detail_lines(event: NotificationEvent, desc: Dict, history: List[Dict], tags: Dict[str, str],
                 now: Optional[dt.datetime] = None) -> List[str]:
    builder = DETAIL_BUILDERS.get((event.state, shape(event)))
    if builder is None:
        return []
    alarms = desc.get("MetricAlarms") or []
    ctx = AlarmContext(
        event=event,
        alarm=alarms[0] if alarms else {},
        tags=tags or {},
        history=history or [],
        log_group=log_group_name(desc, tags),
        now=parse_ts(now) if now else dt.datetime.now(dt.timezone.utc),
    )
    return builder(ctx)

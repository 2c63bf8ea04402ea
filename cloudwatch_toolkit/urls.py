"""
Console links for alarm notifications.

CloudWatch console deep links use their own encoding: alarm names are
URI-encoded with `%` swapped for `$`, and metric graphs are described with the
console's `~(...)` notation, where string values are prefixed with `'` and
escaped with `*` in place of `%`.
"""
import datetime as dt
from typing import Dict, List, Optional
from urllib.parse import quote

from . import config

CONSOLE = "https://console.aws.amazon.com/cloudwatch/home"

# encodeURI leaves these untouched
_URI_SAFE = ";,/?:@&=+$!*'()#"


def _tilde_str(value) -> str:
    return "'" + quote(str(value), safe="").replace("%", "*")


def sso_deep_link(account_id: str, url: str) -> str:
    """Wraps a console URL so it opens through IAM Identity Center in the given account."""
    if not config.SSO_START_URL:
        return url
    destination = quote(url, safe="!*'()")
    return (
        f"{config.SSO_START_URL.rstrip('/')}/#/console?account_id={account_id}"
        f"&role_name={config.SSO_ROLE_NAME}&destination={destination}"
    )


def alarm_console(alarm_name: str, region: str) -> str:
    encoded = quote(alarm_name.replace(" ", "+"), safe=_URI_SAFE).replace("%", "$")
    return f"{CONSOLE}?region={region}#alarmsV2:alarm/{encoded}"


def log_group_console(log_group: str, region: str) -> str:
    encoded = quote(quote(log_group, safe=""), safe="").replace("%", "$")
    return f"{CONSOLE}?region={region}#logsV2:log-groups/log-group/{encoded}"


def _iso(ts) -> str:
    if isinstance(ts, dt.datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=dt.timezone.utc)
        return ts.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    return str(ts)


def metric_graph(alarm: Dict, region: str, alarm_times: Optional[List] = None, hours: int = 24) -> str:
    """
    Console graph of the alarm's metric over the last `hours`, with the
    threshold as a horizontal annotation and each transition to ALARM as a
    vertical annotation. The annotations section is always last so it can be
    dropped from message text as a unit.
    """
    metric = ["~" + _tilde_str(alarm.get("Namespace", "")), "~" + _tilde_str(alarm.get("MetricName", ""))]
    for d in alarm.get("Dimensions") or []:
        metric.append("~" + _tilde_str(d.get("Name", "")))
        metric.append("~" + _tilde_str(d.get("Value", "")))

    graph = [
        f"metrics~(~({''.join(metric)}))",
        f"region~{_tilde_str(region)}",
        f"stat~{_tilde_str(alarm.get('Statistic') or alarm.get('ExtendedStatistic') or 'Average')}",
        f"period~{int(alarm.get('Period') or 60)}",
        f"start~{_tilde_str(f'-PT{hours}H')}",
        f"end~{_tilde_str('P0D')}",
    ]

    horizontal = ""
    if alarm.get("Threshold") is not None:
        horizontal = f"horizontal~(~(value~{alarm['Threshold']:g}~label~{_tilde_str('Threshold')}))"
    vertical = "".join(
        f"~(value~{_tilde_str(_iso(ts))}~label~{_tilde_str('ALARM')})" for ts in (alarm_times or [])
    )
    parts = [p for p in (horizontal, f"vertical~({vertical})" if vertical else "") if p]
    if parts:
        graph.append(f"annotations~({'~'.join(parts)})")

    return f"{CONSOLE}?region={region}#metricsV2:graph=~({'~'.join(graph)})"

"""
Alarm Slack Report Lambda

Flow:
  Schedule (daily) → this Lambda
  For every SEARCH_ACCOUNTS x SEARCH_REGIONS pair, lists alarms in any state
  For each alarm that changed state inside the report window, counts its
  transitions to ALARM from the alarm history
  Posts one report message; nothing if no alarm changed state

Environment Variables:
  CLOUDWATCH_CROSS_ACCOUNT_SHARING_ROLE_NAME
  SEARCH_ACCOUNTS / SEARCH_REGIONS        (comma-delimited)
  REPORT_WINDOW_HOURS                     (default 26)
  REPORT_CHANNEL_ID                       (default: sandbox channel)
"""
import json
import logging
import datetime as dt
from typing import Dict, List, Optional

from . import classify, config, directory, relay, render
from .credentials import CredentialBroker
from .details import to_alarm_times
from .models import RenderedMessage
from .regions import arn_region, region_label
from .scan import ScanResult, scan

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def collect_activity(cw, account_id: str, region: str, now: Optional[dt.datetime] = None,
                     hours: Optional[int] = None) -> ScanResult:
    end = classify.parse_ts(now) if now else dt.datetime.now(dt.timezone.utc)
    start = end - dt.timedelta(hours=hours or config.REPORT_WINDOW_HOURS)
    found = directory.list_alarms(cw, state_value=None)

    def active(alarms: List[Dict]) -> List[Dict]:
        out = []
        for alarm in classify.filter_by_name(alarms):
            changed = classify.parse_ts(alarm.get("StateTransitionedTimestamp") or alarm.get("StateUpdatedTimestamp"))
            if changed is None or changed < start:
                continue
            history = directory.alarm_history(cw, alarm["AlarmName"], start, end)
            alarm["TransitionsToAlarm"] = len(to_alarm_times(history))
            out.append(alarm)
        return out

    return ScanResult(active(found.composite_alarms), active(found.metric_alarms))


def report_line(alarm: Dict) -> str:
    name = render.clean_name(alarm.get("AlarmName", ""))
    region = region_label(arn_region(alarm.get("AlarmArn", "")))
    return f"*{region} » {name}*: `{alarm.get('TransitionsToAlarm', 0)}`"


def build_message(result: ScanResult, hours: Optional[int] = None) -> RenderedMessage:
    hours = hours or config.REPORT_WINDOW_HOURS
    alarms = sorted(result.metric_alarms + result.composite_alarms,
                    key=lambda a: -a.get("TransitionsToAlarm", 0))
    blocks = [render.header(f":memo: {hours}-Hour Alarm Report")]
    blocks.extend(render.sections(report_line(a) for a in alarms))
    return RenderedMessage(
        channel=config.REPORT_CHANNEL_ID,
        fallback=f"{result.count} alarms changed state in the last {hours} hours",
        color=render.STATE_COLORS["ALARM"],
        blocks=blocks,
    )


def handle(accounts: Optional[List[str]] = None, regions: Optional[List[str]] = None, client_factory=None,
           events=None, now: Optional[dt.datetime] = None) -> Dict:
    accounts = config.SEARCH_ACCOUNTS if accounts is None else accounts
    regions = config.SEARCH_REGIONS if regions is None else regions
    factory = client_factory or CredentialBroker(session_name="report_lambda_reader")

    result = scan(accounts, regions, factory, lambda cw, a, r: collect_activity(cw, a, r, now))
    summary = {
        "ok": True,
        "posted": False,
        "count": result.count,
        "transitions_to_alarm": sum(a.get("TransitionsToAlarm", 0) for a in result.metric_alarms + result.composite_alarms),
        "failed_pairs": [f"{a}/{r}" for a, r, _ in result.failures],
    }

    if result.count == 0:
        logger.info(f"No alarm activity in window: {json.dumps(summary)}")
        return summary

    relay.publish(build_message(result), events)
    summary["posted"] = True
    logger.info(f"Report posted: {json.dumps(summary)}")
    return summary


def lambda_handler(event, context):
    logger.info(f"Report start event={json.dumps(event or {}, default=str)}")
    return handle()

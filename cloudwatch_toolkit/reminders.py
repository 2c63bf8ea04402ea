"""
Alarm Slack Reminders Lambda

Flow:
  Schedule → this Lambda
  For every SEARCH_ACCOUNTS x SEARCH_REGIONS pair, lists alarms currently in ALARM
  Drops noise alarms and alarms that started within the last hour
  Posts one "Long-running Alarms" message, longest first; nothing if there are none

Environment Variables:
  CLOUDWATCH_CROSS_ACCOUNT_SHARING_ROLE_NAME
  SEARCH_ACCOUNTS / SEARCH_REGIONS        (comma-delimited)
  LONG_RUNNING_THRESHOLD_SECONDS          (default 3600)
  REMINDERS_CHANNEL_ID                    (default: error channel)
  SCAN_CONCURRENCY                        (default 4)
"""
import json
import logging
import datetime as dt
from typing import Dict, List, Optional

from . import classify, config, directory, relay, render, urls
from .credentials import CredentialBroker
from .models import RenderedMessage
from .regions import arn_account, arn_region
from .scan import ScanResult, scan

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def collect_long_running(cw, account_id: str, region: str, now: Optional[dt.datetime] = None) -> ScanResult:
    found = directory.list_alarms(cw, state_value="ALARM")

    def keep(alarms: List[Dict]) -> List[Dict]:
        named = classify.filter_by_name(alarms)
        return classify.long_running([classify.inject_duration(a, now) for a in named])

    return ScanResult(keep(found.composite_alarms), keep(found.metric_alarms))


def alarm_entry(alarm: Dict) -> str:
    arn = alarm.get("AlarmArn", "")
    region = arn_region(arn)
    name = alarm.get("AlarmName", "")
    url = urls.sso_deep_link(arn_account(arn), urls.alarm_console(name, region))
    lines = [f"*{render.link(url, render.title(alarm.get('StateValue', 'ALARM'), region, name))}*"]
    if alarm.get("EstimatedDuration") is not None:
        lines.append(f"*Started:* {classify.humanize_duration(alarm['EstimatedDuration'])} ago")
    return "\n".join(lines)


def build_message(result: ScanResult) -> RenderedMessage:
    alarms = classify.sort_by_duration(result.metric_alarms + result.composite_alarms)
    blocks = [render.header(":stopwatch: Long-running Alarms")]
    blocks.extend(render.sections(alarm_entry(a) for a in alarms))
    return RenderedMessage(
        channel=config.REMINDERS_CHANNEL_ID,
        fallback=f"There are *{result.count}* long-running alarms",
        color=render.STATE_COLORS["ALARM"],
        blocks=blocks,
    )


def handle(accounts: Optional[List[str]] = None, regions: Optional[List[str]] = None, client_factory=None,
           events=None, now: Optional[dt.datetime] = None) -> Dict:
    accounts = config.SEARCH_ACCOUNTS if accounts is None else accounts
    regions = config.SEARCH_REGIONS if regions is None else regions
    factory = client_factory or CredentialBroker(session_name="reminders_lambda_reader")

    result = scan(accounts, regions, factory, lambda cw, a, r: collect_long_running(cw, a, r, now))
    summary = {
        "ok": True,
        "posted": False,
        "count": result.count,
        "pairs": len(accounts) * len(regions),
        "failed_pairs": [f"{a}/{r}" for a, r, _ in result.failures],
    }

    if result.count == 0:
        logger.info(f"No long-running alarms found: {json.dumps(summary)}")
        return summary

    message = build_message(result)
    if config.DEBUG_MODE:
        logger.info(json.dumps({"dbg": "message", "blocks": message.blocks}))
    relay.publish(message, events)
    summary["posted"] = True
    logger.info(f"Reminder posted: {json.dumps(summary)}")
    return summary


def lambda_handler(event, context):
    logger.info(f"Reminders start event={json.dumps(event or {}, default=str)}")
    return handle()

"""
Alarm Slack Notifications Lambda

Flow:
  CloudWatch Alarm State Change (org event bus) → this Lambda
  Assumes the cross-account role in the alarm's account/region
  Fetches the alarm's full description, tags and recent state history
  Builds a state-specific Slack message and hands it to the message relay

Environment Variables:
  CROSS_ACCOUNT_CLOUDWATCH_ALARM_IAM_ROLE_NAME  (role assumed in the alarm's account)
  FATAL_CHANNEL_ID / ERROR_CHANNEL_ID / WARN_CHANNEL_ID / INFO_CHANNEL_ID / DEFAULT_CHANNEL_ID
  NOTIFICATION_HISTORY_HOURS                    (default 24)
  RELAY_EVENT_BUS_NAME                          (optional, default bus if unset)
"""
import json
import logging
import datetime as dt
from typing import Dict, Optional

from . import classify, config, directory, relay, render, urls
from .credentials import CredentialBroker
from .details import detail_lines
from .errors import ToolkitError
from .models import NotificationEvent, RenderedMessage

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def build_message(event: NotificationEvent, cw, now: Optional[dt.datetime] = None) -> RenderedMessage:
    now = classify.parse_ts(now) if now else dt.datetime.now(dt.timezone.utc)
    desc, tags = directory.describe_alarm(cw, event.alarm_name, event.alarm_arn or None)
    start = now - dt.timedelta(hours=config.NOTIFICATION_HISTORY_HOURS)
    history = directory.alarm_history(cw, event.alarm_name, start, now)

    title = render.title(event.state, event.region, event.alarm_name)
    url = urls.sso_deep_link(event.account, urls.alarm_console(event.alarm_name, event.region))
    lines = detail_lines(event, desc, history, tags, now)

    return RenderedMessage(
        channel=classify.channel(event.alarm_name),
        fallback=title,
        color=render.STATE_COLORS.get(event.state, "#aaaaaa"),
        blocks=render.notification_blocks(event.state, title, url, lines, event.description),
    )


def handle(raw_event: Dict, client_factory=None, events=None, now: Optional[dt.datetime] = None) -> Dict:
    event = NotificationEvent.from_eventbridge(raw_event)
    context = {"account": event.account, "region": event.region, "alarm": event.alarm_name, "state": event.state}

    if classify.is_excluded(event.alarm_name):
        logger.info(json.dumps({"msg": "Excluded alarm skipped", **context}))
        return {"ok": True, "posted": False, "skipped": "excluded", **context}

    factory = client_factory or CredentialBroker(session_name="notifications_lambda_reader")
    try:
        cw = factory(event.account, event.region)
        message = build_message(event, cw, now)
    except ToolkitError as e:
        logger.error(json.dumps({"msg": "Notification failed", "error": type(e).__name__, "detail": str(e), **context}))
        return {"ok": False, "posted": False, "error": str(e), **context}

    if config.DEBUG_MODE:
        logger.info(json.dumps({"dbg": "message", "channel": message.channel, "blocks": message.blocks}))

    relay.publish(message, events)
    return {"ok": True, "posted": True, "channel": message.channel, **context}


def lambda_handler(event, context):
    logger.info(f"Notification start event={json.dumps(event or {}, default=str)}")
    return handle(event or {})

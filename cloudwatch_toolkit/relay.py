import json
import logging
from typing import Optional

import boto3

from . import config
from .models import RenderedMessage

logger = logging.getLogger(__name__)

_events = None


def events_client():
    global _events
    if _events is None:
        _events = boto3.client("events")
    return _events


def publish(message: RenderedMessage, events=None, source: Optional[str] = None,
            event_bus_name: Optional[str] = None) -> dict:
    """
    Sends a rendered message to the Slack message relay as a single
    EventBridge event. Delivery is not awaited; failed entries are logged.
    """
    entry = {
        "Source": source or config.RELAY_EVENT_SOURCE,
        "DetailType": config.RELAY_DETAIL_TYPE,
        "Detail": json.dumps(message.relay_detail(config.RELAY_USERNAME, config.RELAY_ICON_EMOJI), ensure_ascii=False),
    }
    bus = config.RELAY_EVENT_BUS_NAME if event_bus_name is None else event_bus_name
    if bus:
        entry["EventBusName"] = bus

    resp = (events or events_client()).put_events(Entries=[entry])
    if resp.get("FailedEntryCount"):
        for e in resp.get("Entries", []):
            if e.get("ErrorCode"):
                logger.error(f"Relay put_events failed channel={message.channel}: {e.get('ErrorCode')} {e.get('ErrorMessage', '')}")
    else:
        logger.info(f"Relay message sent channel={message.channel} blocks={len(message.blocks)}")
    return resp

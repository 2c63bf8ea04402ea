"""
Slack block rendering.

Text blocks inside message attachments are limited to 3000 characters, so
every block built here goes through `fit_text`.
"""
import re
import json
import logging
from typing import Dict, Iterable, List, Optional

from .regions import region_label

logger = logging.getLogger(__name__)

MAX_BLOCK_CHARS = 3000

STATE_COLORS = {
    "ALARM": "#a30200",
    "OK": "#2eb886",
    "INSUFFICIENT_DATA": "#aaaaaa",
}

_SUFFIX_RE = re.compile(r"\([A-Za-z0-9 _-]+\)$")
_SEVERITY_RE = re.compile(r"^(FATAL|ERROR|WARN|INFO|CRITICAL|MAJOR|MINOR)")
# Metric graph annotations, as written by urls.metric_graph
_ANNOTATIONS_RE = re.compile(r"~annotations.*?\)\)\)")


def clean_name(alarm_name: str) -> str:
    """
    Alarm name made safe for Slack, without its trailing `(...)` suffix or
    leading severity, e.g. `WARN Queue depth (prod)` becomes `Queue depth`.
    """
    name = (alarm_name or "").replace(">", "&gt;").replace("<", "&lt;")
    name = _SUFFIX_RE.sub("", name)
    name = _SEVERITY_RE.sub("", name)
    return name.strip()


def title(state: str, region: str, alarm_name: str) -> str:
    return f"{state} | {region_label(region)} » {clean_name(alarm_name)}"


def link(url: str, text: str) -> str:
    return f"<{url}|{text}>"


def fit_text(text: str, limit: int = MAX_BLOCK_CHARS) -> str:
    if len(text) <= limit:
        return text
    logger.info(json.dumps({"textLength": len(text), "msg": "All annotations being truncated"}))
    text = _ANNOTATIONS_RE.sub("", text, count=1)
    if len(text) > limit:
        text = text[:limit]
    return text


def header(text: str) -> Dict:
    return {"type": "header", "text": {"type": "plain_text", "text": text[:150], "emoji": True}}


def section(text: str) -> Dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": fit_text(text)}}


def sections(lines: Iterable[str], limit: int = MAX_BLOCK_CHARS) -> List[Dict]:
    """Packs lines into as few section blocks as fit, never splitting a line unless it alone is too long."""
    blocks: List[Dict] = []
    current: List[str] = []
    size = 0
    for line in lines:
        extra = len(line) + (1 if current else 0)
        if current and size + extra > limit:
            blocks.append(section("\n".join(current)))
            current, size = [], 0
            extra = len(line)
        current.append(line)
        size += extra
    if current:
        blocks.append(section("\n".join(current)))
    return blocks


def notification_blocks(state: str, title_text: str, url: str, detail_lines: List[str],
                        description: Optional[str] = None) -> List[Dict]:
    """
    Blocks for a single alarm state change:
    - linked title
    - details about the new state (cause, duration, etc)
    - for ALARM only, the alarm's own description
    """
    blocks = [section(f"*{link(url, title_text)}*")]
    if detail_lines:
        blocks.append(section("\n".join(detail_lines)))
    if state == "ALARM" and description:
        blocks.append(section(description))
    return blocks

from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from .regions import arn_account, arn_region

STATES = ("ALARM", "OK", "INSUFFICIENT_DATA")


class NotificationEvent(NamedTuple):
    account: str
    region: str
    alarm_name: str
    state: str
    alarm_arn: str = ""
    reason: str = ""
    reason_data: Optional[str] = None
    timestamp: Optional[str] = None
    description: Optional[str] = None
    metrics: Tuple[Dict, ...] = ()
    previous_state: Optional[str] = None

    @classmethod
    def from_eventbridge(cls, event: Dict[str, Any]) -> "NotificationEvent":
        """Parses a `CloudWatch Alarm State Change` event."""
        detail = event.get("detail") or {}
        state = detail.get("state") or {}
        configuration = detail.get("configuration") or {}
        arn = (event.get("resources") or [""])[0]
        return cls(
            account=event.get("account") or arn_account(arn),
            region=event.get("region") or arn_region(arn),
            alarm_name=detail.get("alarmName", ""),
            state=state.get("value", ""),
            alarm_arn=arn,
            reason=state.get("reason", ""),
            reason_data=state.get("reasonData"),
            timestamp=state.get("timestamp"),
            description=configuration.get("description"),
            metrics=tuple(configuration.get("metrics") or ()),
            previous_state=(detail.get("previousState") or {}).get("value"),
        )


class RenderedMessage(NamedTuple):
    channel: str
    fallback: str
    color: str
    blocks: List[Dict]

    def relay_detail(self, username: str, icon_emoji: str) -> Dict[str, Any]:
        return {
            "username": username,
            "icon_emoji": icon_emoji,
            "channel": self.channel,
            "attachments": [
                {
                    "color": self.color,
                    "fallback": self.fallback,
                    "blocks": self.blocks,
                }
            ],
        }

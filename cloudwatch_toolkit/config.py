import os
from typing import Dict, List


def _csv(name: str, default: str = "") -> List[str]:
    return [t.strip() for t in os.environ.get(name, default).split(",") if t.strip()]


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


# ---- Cross-account access ----
ROLE_NAME = (
    os.environ.get("CLOUDWATCH_CROSS_ACCOUNT_SHARING_ROLE_NAME")
    or os.environ.get("CROSS_ACCOUNT_CLOUDWATCH_ALARM_IAM_ROLE_NAME")
    or "CloudWatch-CrossAccountSharingRole"
)
SEARCH_ACCOUNTS = _csv("SEARCH_ACCOUNTS")
SEARCH_REGIONS = _csv("SEARCH_REGIONS")

# ---- Slack destinations ----
FATAL_CHANNEL_ID = os.environ.get("FATAL_CHANNEL_ID", "G2QH13X62")  # #ops-fatal
ERROR_CHANNEL_ID = os.environ.get("ERROR_CHANNEL_ID", "G2QH6NMEH")  # #ops-error
WARN_CHANNEL_ID = os.environ.get("WARN_CHANNEL_ID", "G2QHC2N7K")  # #ops-warn
INFO_CHANNEL_ID = os.environ.get("INFO_CHANNEL_ID", "G2QHBL6UX")  # #ops-info
DEFAULT_CHANNEL_ID = os.environ.get("DEFAULT_CHANNEL_ID", "#sandbox2")
REMINDERS_CHANNEL_ID = os.environ.get("REMINDERS_CHANNEL_ID", ERROR_CHANNEL_ID)
REPORT_CHANNEL_ID = os.environ.get("REPORT_CHANNEL_ID", DEFAULT_CHANNEL_ID)

# Checked in order; the first prefix the alarm name starts with wins
SEVERITY_CHANNELS: Dict[str, str] = {
    "FATAL": FATAL_CHANNEL_ID,
    "ERROR": ERROR_CHANNEL_ID,
    "WARN": WARN_CHANNEL_ID,
    "INFO": INFO_CHANNEL_ID,
    "CRITICAL": FATAL_CHANNEL_ID,
    "MAJOR": ERROR_CHANNEL_ID,
    "MINOR": WARN_CHANNEL_ID,
}

# ---- Filtering ----
EXCLUDED_ALARM_NAME_PATTERNS = _csv(
    "EXCLUDED_ALARM_NAME_PATTERNS",
    "AS:In,AS:Out,TargetTracking,ScaleInAlarm,ScaleOutAlarm,Production Pollers Low CPU Usage",
)
LONG_RUNNING_THRESHOLD_SECONDS = int(os.environ.get("LONG_RUNNING_THRESHOLD_SECONDS", "3600"))
LOG_GROUP_TAGGED_NAMESPACES = _csv(
    "LOG_GROUP_TAGGED_NAMESPACES",
    "AWS/ApplicationELB,PRX/Dovetail/Router,PRX/Dovetail/Legacy,PRX/Dovetail/Counts,"
    "PRX/Dovetail/Analytics,PRX/Augury,PRX/Feeder,PRX/Clickhouse",
)
LOG_GROUP_NAME_TAG = os.environ.get("LOG_GROUP_NAME_TAG", "prx:ops:cloudwatch-log-group-name")

# ---- Windows ----
REPORT_WINDOW_HOURS = int(os.environ.get("REPORT_WINDOW_HOURS", "26"))
NOTIFICATION_HISTORY_HOURS = int(os.environ.get("NOTIFICATION_HISTORY_HOURS", "24"))

# ---- Concurrency & retries ----
SCAN_CONCURRENCY = int(os.environ.get("SCAN_CONCURRENCY", "4"))
CLOUDWATCH_MAX_RETRIES = int(os.environ.get("CLOUDWATCH_MAX_RETRIES", "10"))
CLOUDWATCH_RETRY_BASE_DELAY = float(os.environ.get("CLOUDWATCH_RETRY_BASE_DELAY", "0.1"))
CLOUDWATCH_RETRY_MAX_DELAY = float(os.environ.get("CLOUDWATCH_RETRY_MAX_DELAY", "10.0"))

# ---- Relay ----
RELAY_EVENT_BUS_NAME = os.environ.get("RELAY_EVENT_BUS_NAME", "")
RELAY_EVENT_SOURCE = os.environ.get("RELAY_EVENT_SOURCE", "org.prx.cloudwatch-alarm-reminders")
RELAY_DETAIL_TYPE = "Slack Message Relay Message Payload"
RELAY_USERNAME = os.environ.get("RELAY_USERNAME", "Amazon CloudWatch Alarms")
RELAY_ICON_EMOJI = os.environ.get("RELAY_ICON_EMOJI", ":ops-cloudwatch-alarm:")

# ---- Console links ----
SSO_START_URL = os.environ.get("SSO_START_URL", "")
SSO_ROLE_NAME = os.environ.get("SSO_ROLE_NAME", "AdministratorAccess")

# ---- Logging & debug ----
DEBUG_MODE = _flag("DEBUG_MODE")

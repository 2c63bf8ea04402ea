"""
Alarm directory client.

Reads alarm state from one account/region through a CloudWatch client that
already carries scoped credentials. Every call goes through
`call_with_retry`; pagination follows `NextToken` until it runs out.
"""
import time
import json
import logging
import datetime as dt
from typing import Any, Callable, Dict, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError, ConnectionError as BotoConnectionError

from . import config
from .errors import BackendError, BackendTransientError
from .scan import ScanResult

logger = logging.getLogger(__name__)

ALARM_TYPES = ["CompositeAlarm", "MetricAlarm"]

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "RequestThrottled",
    "RequestThrottledException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "LimitExceededException",
    "ServiceUnavailable",
    "InternalFailure",
    "InternalServiceError",
}


def _classify(operation: str, err: Exception) -> BackendError:
    if isinstance(err, ClientError):
        error = err.response.get("Error", {})
        code = error.get("Code", "")
        status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0
        if code in THROTTLING_CODES or status >= 500:
            return BackendTransientError(operation, error.get("Message", ""), code)
        return BackendError(operation, error.get("Message", ""), code)
    if isinstance(err, BotoConnectionError):
        return BackendTransientError(operation, str(err))
    return BackendError(operation, str(err))


def backoff_delay(attempt: int, base: Optional[float] = None, cap: Optional[float] = None) -> float:
    base = config.CLOUDWATCH_RETRY_BASE_DELAY if base is None else base
    cap = config.CLOUDWATCH_RETRY_MAX_DELAY if cap is None else cap
    delay = min(base * (2 ** (attempt - 1)), cap)
    return delay + 0.1 * delay


def call_with_retry(fn: Callable[..., Dict], operation: str, max_attempts: Optional[int] = None,
                    sleep: Optional[Callable[[float], Any]] = None, **kwargs) -> Dict:
    attempts = max(1, config.CLOUDWATCH_MAX_RETRIES if max_attempts is None else max_attempts)
    last_err: Optional[BackendError] = None
    for attempt in range(1, attempts + 1):
        try:
            return fn(**kwargs)
        except (ClientError, BotoCoreError) as e:
            err = _classify(operation, e)
            if not isinstance(err, BackendTransientError):
                raise err from e
            last_err = err
            if attempt < attempts:
                delay = backoff_delay(attempt)
                logger.warning(f"{operation} attempt {attempt}/{attempts} failed ({err.code or err.reason}); retrying in {delay:.2f}s")
                (sleep or time.sleep)(delay)
    raise BackendError(operation, last_err.reason if last_err else "", last_err.code if last_err else "")


def list_alarms(cw, state_value: Optional[str] = "ALARM") -> ScanResult:
    """
    Lists every composite and metric alarm visible to the client. Pass
    `state_value=None` to list alarms in any state.
    """
    result = ScanResult()
    token = None
    pages = 0
    while True:
        kwargs: Dict[str, Any] = {"AlarmTypes": ALARM_TYPES}
        if state_value:
            kwargs["StateValue"] = state_value
        if token:
            kwargs["NextToken"] = token
        resp = call_with_retry(cw.describe_alarms, "DescribeAlarms", **kwargs)
        result.composite_alarms.extend(resp.get("CompositeAlarms", []))
        result.metric_alarms.extend(resp.get("MetricAlarms", []))
        pages += 1
        token = resp.get("NextToken")
        if not token:
            break
    if config.DEBUG_MODE:
        logger.info(json.dumps({"dbg": "list_alarms", "pages": pages, "state": state_value,
                                "composite": len(result.composite_alarms), "metric": len(result.metric_alarms)}))
    return result


def describe_alarm(cw, alarm_name: str, alarm_arn: Optional[str] = None) -> Tuple[Dict, Dict[str, str]]:
    """Full description of a single alarm and its resource tags as a dict."""
    desc = call_with_retry(cw.describe_alarms, "DescribeAlarms", AlarmNames=[alarm_name], AlarmTypes=ALARM_TYPES)
    if not alarm_arn:
        found = (desc.get("MetricAlarms") or []) + (desc.get("CompositeAlarms") or [])
        alarm_arn = found[0].get("AlarmArn") if found else None
    if not alarm_arn:
        logger.warning(f"Alarm not found: {alarm_name}")
        return desc, {}
    tag_list = call_with_retry(cw.list_tags_for_resource, "ListTagsForResource", ResourceARN=alarm_arn)
    tags = {t["Key"]: t.get("Value", "") for t in tag_list.get("Tags", [])}
    return desc, tags


def _as_utc(ts) -> Optional[dt.datetime]:
    if not isinstance(ts, dt.datetime):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts.astimezone(dt.timezone.utc)


def alarm_history(cw, alarm_name: str, start: dt.datetime, end: dt.datetime) -> List[Dict]:
    """State transitions for one alarm with timestamps in [start, end), in the order CloudWatch returns them."""
    items: List[Dict] = []
    token = None
    start_utc, end_utc = _as_utc(start), _as_utc(end)
    while True:
        kwargs: Dict[str, Any] = {
            "AlarmName": alarm_name,
            "HistoryItemType": "StateUpdate",
            "StartDate": start,
            "EndDate": end,
        }
        if token:
            kwargs["NextToken"] = token
        resp = call_with_retry(cw.describe_alarm_history, "DescribeAlarmHistory", **kwargs)
        for item in resp.get("AlarmHistoryItems", []):
            ts = _as_utc(item.get("Timestamp"))
            if ts is not None and not (start_utc <= ts < end_utc):
                continue
            items.append(item)
        token = resp.get("NextToken")
        if not token:
            break
    return items

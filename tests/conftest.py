import json
import datetime as dt

import pytest
from botocore.exceptions import ClientError

NOW = dt.datetime(2024, 5, 1, 12, 0, 0, tzinfo=dt.timezone.utc)


def client_error(code, status=400, operation="DescribeAlarms"):
    return ClientError({"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}}, operation)


def alarm_arn(name, account="111111111111", region="us-east-1"):
    return f"arn:aws:cloudwatch:{region}:{account}:alarm:{name}"


def metric_alarm(name, account="111111111111", region="us-east-1", state="ALARM", started=None, **extra):
    alarm = {
        "AlarmName": name,
        "AlarmArn": alarm_arn(name, account, region),
        "StateValue": state,
        "Namespace": "AWS/SQS",
        "MetricName": "ApproximateAgeOfOldestMessage",
        "Dimensions": [{"Name": "QueueName", "Value": "jobs"}],
        "Statistic": "Maximum",
        "Period": 300,
        "EvaluationPeriods": 3,
        "Threshold": 600.0,
        "ComparisonOperator": "GreaterThanThreshold",
        "StateTransitionedTimestamp": NOW - dt.timedelta(hours=1),
    }
    if started is not None:
        alarm["StateReasonData"] = json.dumps({"startDate": started.strftime("%Y-%m-%dT%H:%M:%S.000+0000")})
    alarm.update(extra)
    return alarm


def history_item(name, ts, summary):
    return {"AlarmName": name, "Timestamp": ts, "HistoryItemType": "StateUpdate", "HistorySummary": summary}


class FakeCloudWatch:
    """In-memory stand-in for a boto3 CloudWatch client, paging results `page_size` at a time."""

    def __init__(self, metric_alarms=(), composite_alarms=(), history=None, tags=None, page_size=2, errors=None):
        self.metric_alarms = list(metric_alarms)
        self.composite_alarms = list(composite_alarms)
        self.history = history or {}
        self.tags = tags or {}
        self.page_size = page_size
        self.errors = list(errors or [])
        self.calls = []

    def _maybe_fail(self):
        if self.errors:
            raise self.errors.pop(0)

    def _page(self, items, token):
        start = int(token or 0)
        end = start + self.page_size
        return items[start:end], (str(end) if end < len(items) else None)

    def describe_alarms(self, **kwargs):
        self.calls.append(("describe_alarms", kwargs))
        self._maybe_fail()
        if "AlarmNames" in kwargs:
            names = set(kwargs["AlarmNames"])
            return {
                "MetricAlarms": [dict(a) for a in self.metric_alarms if a["AlarmName"] in names],
                "CompositeAlarms": [dict(a) for a in self.composite_alarms if a["AlarmName"] in names],
            }
        state = kwargs.get("StateValue")
        items = [("CompositeAlarms", a) for a in self.composite_alarms] + [("MetricAlarms", a) for a in self.metric_alarms]
        items = [(k, a) for k, a in items if state is None or a["StateValue"] == state]
        page, token = self._page(items, kwargs.get("NextToken"))
        resp = {
            "MetricAlarms": [dict(a) for k, a in page if k == "MetricAlarms"],
            "CompositeAlarms": [dict(a) for k, a in page if k == "CompositeAlarms"],
        }
        if token:
            resp["NextToken"] = token
        return resp

    def describe_alarm_history(self, **kwargs):
        self.calls.append(("describe_alarm_history", kwargs))
        self._maybe_fail()
        page, token = self._page(self.history.get(kwargs["AlarmName"], []), kwargs.get("NextToken"))
        resp = {"AlarmHistoryItems": list(page)}
        if token:
            resp["NextToken"] = token
        return resp

    def list_tags_for_resource(self, **kwargs):
        self.calls.append(("list_tags_for_resource", kwargs))
        tags = self.tags.get(kwargs["ResourceARN"], {})
        return {"Tags": [{"Key": k, "Value": v} for k, v in tags.items()]}


class FakeEvents:
    def __init__(self, failed=False):
        self.entries = []
        self.failed = failed

    def put_events(self, Entries):
        self.entries.extend(Entries)
        if self.failed:
            return {"FailedEntryCount": 1, "Entries": [{"ErrorCode": "InternalException", "ErrorMessage": "boom"}]}
        return {"FailedEntryCount": 0, "Entries": [{"EventId": "1"}]}

    def details(self):
        return [json.loads(e["Detail"]) for e in self.entries]


class FakeFactory:
    """Client factory keyed by (account, region); exceptions in the map are raised instead."""

    def __init__(self, clients):
        self.clients = clients
        self.calls = []

    def __call__(self, account_id, region):
        self.calls.append((account_id, region))
        client = self.clients.get((account_id, region))
        if isinstance(client, Exception):
            raise client
        return client if client is not None else FakeCloudWatch()


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    from cloudwatch_toolkit import directory
    monkeypatch.setattr(directory.time, "sleep", lambda s: None)

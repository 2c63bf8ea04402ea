import json
import datetime as dt

import pytest

from cloudwatch_toolkit import classify, config

from conftest import NOW


class TestExclusion:
    def test_autoscaling_alarms_are_excluded(self):
        assert classify.is_excluded("myapp-TargetTracking-abc")
        assert classify.is_excluded("AS:In my-asg")
        assert classify.is_excluded("web-ScaleOutAlarm-123")
        assert classify.is_excluded("Production Pollers Low CPU Usage")

    def test_regular_alarm_is_kept(self):
        assert not classify.is_excluded("FATAL Something")

    def test_custom_patterns(self):
        assert classify.is_excluded("noisy alarm", patterns=["noisy"])
        assert not classify.is_excluded("myapp-TargetTracking-abc", patterns=["noisy"])

    def test_filter_by_name(self):
        alarms = [{"AlarmName": "ERROR api 5xx"}, {"AlarmName": "x-TargetTracking-y"}]
        assert [a["AlarmName"] for a in classify.filter_by_name(alarms)] == ["ERROR api 5xx"]


class TestChannel:
    @pytest.mark.parametrize("prefix,expected", [
        ("FATAL", config.FATAL_CHANNEL_ID),
        ("ERROR", config.ERROR_CHANNEL_ID),
        ("WARN", config.WARN_CHANNEL_ID),
        ("INFO", config.INFO_CHANNEL_ID),
        ("CRITICAL", config.FATAL_CHANNEL_ID),
        ("MAJOR", config.ERROR_CHANNEL_ID),
        ("MINOR", config.WARN_CHANNEL_ID),
    ])
    def test_severity_prefixes(self, prefix, expected):
        assert classify.channel(f"{prefix} queue backed up") == expected

    def test_unmatched_goes_to_default(self):
        assert classify.channel("queue backed up") == config.DEFAULT_CHANNEL_ID

    def test_prefix_is_case_sensitive(self):
        assert classify.channel("warn queue backed up") == config.DEFAULT_CHANNEL_ID

    def test_severity_name(self):
        assert classify.severity("MINOR disk") == "MINOR"
        assert classify.severity("disk") is None


class TestDuration:
    def test_start_date(self):
        start = NOW - dt.timedelta(seconds=5400)
        data = {"startDate": start.strftime("%Y-%m-%dT%H:%M:%S.000+0000")}
        assert classify.estimate_duration(data, NOW) == 5400

    def test_most_recent_datapoint_wins(self):
        t1 = NOW - dt.timedelta(hours=3)
        t2 = NOW - dt.timedelta(hours=2)
        data = json.dumps({"evaluatedDatapoints": [
            {"timestamp": t1.strftime("%Y-%m-%dT%H:%M:%S.000+0000"), "value": 1},
            {"timestamp": t2.strftime("%Y-%m-%dT%H:%M:%S.000+0000"), "value": 2},
        ]})
        assert classify.estimate_duration(data, NOW) == 7200

    def test_no_estimate(self):
        assert classify.estimate_duration(None, NOW) is None
        assert classify.estimate_duration("{}", NOW) is None
        assert classify.estimate_duration("not json", NOW) is None
        assert classify.estimate_duration({"evaluatedDatapoints": []}, NOW) is None

    @pytest.mark.parametrize("seconds,expected", [
        (45, "45 seconds"),
        (60, "1 minutes"),
        (3599, "60 minutes"),
        (3600, "1 hours"),
        (86399, "24 hours"),
        (86400, "1 days"),
        (5 * 86400 + 13 * 3600, "6 days"),
        (-4.2, "0 seconds"),
        (-7200, "0 seconds"),
    ])
    def test_humanize(self, seconds, expected):
        assert classify.humanize_duration(seconds) == expected


class TestReminderPolicies:
    def test_long_running_fails_open(self):
        alarms = [
            {"AlarmName": "a", "EstimatedDuration": None},
            {"AlarmName": "b", "EstimatedDuration": 3600},
            {"AlarmName": "c", "EstimatedDuration": 3601},
        ]
        assert [a["AlarmName"] for a in classify.long_running(alarms)] == ["a", "c"]

    def test_sort_unknown_first_then_longest(self):
        alarms = [
            {"AlarmName": "two", "EstimatedDuration": 2 * 3600},
            {"AlarmName": "unknown", "EstimatedDuration": None},
            {"AlarmName": "five", "EstimatedDuration": 5 * 3600},
        ]
        assert [a["AlarmName"] for a in classify.sort_by_duration(alarms)] == ["unknown", "five", "two"]

    def test_inject_duration(self):
        alarm = {"StateReasonData": json.dumps({"startDate": "2024-05-01T10:00:00.000+0000"})}
        assert classify.inject_duration(alarm, NOW)["EstimatedDuration"] == 7200

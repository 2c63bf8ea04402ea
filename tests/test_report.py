import datetime as dt

from cloudwatch_toolkit import config, report

from conftest import NOW, FakeCloudWatch, FakeEvents, FakeFactory, history_item, metric_alarm

ACCOUNT = "111111111111"
REGION = "us-east-2"


def hours_ago(h):
    return NOW - dt.timedelta(hours=h)


def to_alarm(name, *hours):
    return [history_item(name, hours_ago(h), "Alarm updated from OK to ALARM") for h in hours]


def cloudwatch():
    metrics = [
        metric_alarm("WARN once", ACCOUNT, REGION, state="OK", StateTransitionedTimestamp=hours_ago(2)),
        metric_alarm("ERROR flappy (api)", ACCOUNT, REGION, StateTransitionedTimestamp=hours_ago(1)),
        metric_alarm("INFO quiet", ACCOUNT, REGION, state="OK", StateTransitionedTimestamp=hours_ago(30)),
        metric_alarm("x-ScaleOutAlarm-1", ACCOUNT, REGION, StateTransitionedTimestamp=hours_ago(1)),
    ]
    history = {
        "WARN once": to_alarm("WARN once", 3),
        "ERROR flappy (api)": to_alarm("ERROR flappy (api)", 1, 4, 8) + [
            history_item("ERROR flappy (api)", hours_ago(2), "Alarm updated from ALARM to OK"),
        ] + to_alarm("ERROR flappy (api)", 40),
    }
    return FakeCloudWatch(metrics, history=history, page_size=3)


def test_collect_activity_counts_transitions_in_window():
    cw = cloudwatch()
    result = report.collect_activity(cw, ACCOUNT, REGION, NOW)

    counts = {a["AlarmName"]: a["TransitionsToAlarm"] for a in result.metric_alarms}
    assert counts == {"WARN once": 1, "ERROR flappy (api)": 3}
    history_names = {c[1]["AlarmName"] for c in cw.calls if c[0] == "describe_alarm_history"}
    assert history_names == {"WARN once", "ERROR flappy (api)"}
    assert all("StateValue" not in c[1] for c in cw.calls if c[0] == "describe_alarms")


def test_report_message():
    events = FakeEvents()
    factory = FakeFactory({(ACCOUNT, REGION): cloudwatch()})

    summary = report.handle([ACCOUNT], [REGION], client_factory=factory, events=events, now=NOW)

    assert summary["posted"]
    assert summary["count"] == 2
    assert summary["transitions_to_alarm"] == 4
    detail = events.details()[0]
    assert detail["channel"] == config.REPORT_CHANNEL_ID
    attachment = detail["attachments"][0]
    assert attachment["fallback"] == f"2 alarms changed state in the last {config.REPORT_WINDOW_HOURS} hours"
    assert attachment["blocks"][0]["text"]["text"] == f":memo: {config.REPORT_WINDOW_HOURS}-Hour Alarm Report"
    assert attachment["blocks"][1]["text"]["text"] == "*Ohio » flappy*: `3`\n*Ohio » once*: `1`"


def test_quiet_window_sends_nothing():
    events = FakeEvents()
    cw = FakeCloudWatch([metric_alarm("INFO quiet", ACCOUNT, REGION, StateTransitionedTimestamp=hours_ago(48))])

    summary = report.handle([ACCOUNT], [REGION], client_factory=FakeFactory({(ACCOUNT, REGION): cw}),
                            events=events, now=NOW)

    assert not summary["posted"]
    assert events.entries == []

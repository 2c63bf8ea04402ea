"""
CloudWatch alarm toolkit
Slack notifications, long-running alarm reminders and activity reports for
CloudWatch alarms across an AWS organization.
"""
__version__ = "1.0.0"

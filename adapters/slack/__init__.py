"""
Slack 어댑터

Slack Webhook 알림 서비스.
"""

from adapters.slack.notifier import SlackNotifier, format_turn_message

__all__ = [
    "SlackNotifier",
    "format_turn_message",
]

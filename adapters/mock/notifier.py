"""
Mock 알림

네트워크 없이 INotifier를 대신하며, 받은 알림을 메모리에 쌓아
테스트에서 결제/순번 알림 내용을 검증할 수 있게 한다.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Sequence

from adapters.slack.notifier import format_turn_message
from core.types import NotifyLevel


@dataclass
class NotificationRecord:
    """수신한 알림 한 건

    kind: "message" (send) 또는 "turn_alert" (send_turn_alert)
    """

    message: str
    level: str
    extra: dict[str, Any] | None
    sent: bool
    kind: str = "message"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MockNotifier:
    """기록용 Notifier (INotifier 구현)

    Args:
        should_fail: 모든 전송을 실패(False)로 기록
        should_raise: 전송 시 RuntimeError (계약을 어기는 구현체 흉내)

    사용 예시:
    ```python
    notifier = MockNotifier()
    await notifier.send_turn_alert(next_up=["A", "B"])

    assert notifier.last_notification.extra["next_up"] == ["A", "B"]
    ```
    """

    def __init__(self, should_fail: bool = False, should_raise: bool = False):
        self.should_fail = should_fail
        self.should_raise = should_raise
        self.notifications: list[NotificationRecord] = []
        self.closed = False

    def _record(
        self,
        message: str,
        level: str,
        extra: dict[str, Any] | None,
        kind: str,
    ) -> bool:
        if self.should_raise:
            raise RuntimeError("MockNotifier 강제 예외")

        sent = not self.should_fail
        self.notifications.append(
            NotificationRecord(message=message, level=level, extra=extra, sent=sent, kind=kind)
        )
        return sent

    async def send(
        self,
        message: str,
        level: str = NotifyLevel.INFO.value,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        return self._record(message, level, extra, kind="message")

    async def send_turn_alert(
        self,
        next_up: Sequence[str],
        payers: Sequence[str] | None = None,
        amount: Decimal | None = None,
    ) -> bool:
        """포맷된 순번 메시지 + 원본 값(extra) 기록"""
        extra = {
            "next_up": list(next_up),
            "payers": list(payers) if payers else None,
            "amount": amount,
        }
        return self._record(
            format_turn_message(next_up, payers, amount),
            NotifyLevel.INFO.value,
            extra,
            kind="turn_alert",
        )

    async def close(self) -> None:
        self.closed = True

    # -------------------------------------------------------------------------
    # 검증용 조회
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        self.notifications.clear()

    def get_by_level(self, level: str) -> list[NotificationRecord]:
        return [n for n in self.notifications if n.level == level]

    @property
    def turn_alerts(self) -> list[NotificationRecord]:
        """send_turn_alert로 받은 알림"""
        return [n for n in self.notifications if n.kind == "turn_alert"]

    @property
    def last_notification(self) -> NotificationRecord | None:
        return self.notifications[-1] if self.notifications else None

    @property
    def message_count(self) -> int:
        return len(self.notifications)

    @property
    def sent_count(self) -> int:
        return sum(n.sent for n in self.notifications)

    @property
    def failed_count(self) -> int:
        return self.message_count - self.sent_count

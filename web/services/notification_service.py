"""
알림 디스패처

HTTP 응답과 분리된 백그라운드 태스크로 알림 전송.
알림 실패/예외는 로그만 남기며 응답에 영향을 주지 않음.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

from adapters.interfaces import INotifier
from core.rotation.models import PaymentSummary
from core.types import NotifyLevel

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """알림 디스패처

    Args:
        notifier: INotifier 구현체 (None이면 알림 비활성화)
    """

    def __init__(self, notifier: INotifier | None):
        self.notifier = notifier
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return self.notifier is not None

    @property
    def pending(self) -> int:
        """진행 중인 알림 태스크 수"""
        return len(self._tasks)

    def notify_payment(self, payment: PaymentSummary) -> bool:
        """결제 감사 + 다음 차례 알림 예약

        Returns:
            예약 여부
        """
        notifier = self.notifier
        if notifier is None:
            logger.info("알림 설정 없음, 결제 알림 생략")
            return False

        return self._schedule(
            "payment",
            lambda: notifier.send_turn_alert(
                next_up=payment.next_up,
                payers=payment.payers,
                amount=payment.amount,
            ),
        )

    def notify_next_turn(self, next_up: Sequence[str]) -> bool:
        """다음 차례 안내 알림 예약"""
        notifier = self.notifier
        if notifier is None:
            logger.info("알림 설정 없음, 다음 차례 알림 생략")
            return False

        return self._schedule(
            "next_turn",
            lambda: notifier.send_turn_alert(next_up=list(next_up)),
        )

    def notify_alert(
        self,
        message: str,
        level: NotifyLevel = NotifyLevel.WARNING,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """운영 알림 예약 (저장 실패, DB 복구 등)"""
        notifier = self.notifier
        if notifier is None:
            logger.info(f"알림 설정 없음, {level.value} 알림 생략: {message}")
            return False

        return self._schedule(
            f"alert:{level.value.lower()}",
            lambda: notifier.send(message, level=level.value, extra=extra),
        )

    def _schedule(self, label: str, send: Callable[[], Awaitable[bool]]) -> bool:
        task = asyncio.create_task(self._run(label, send))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, label: str, send: Callable[[], Awaitable[bool]]) -> None:
        try:
            sent = await send()
        except Exception as e:
            logger.exception(f"알림 전송 중 예외 ({label}): {e}")
            return

        if sent:
            logger.info(f"알림 전송 완료 ({label})")
        else:
            logger.warning(f"알림 전송 실패 ({label})")

    async def drain(self) -> None:
        """진행 중인 알림 태스크 완료 대기"""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def close(self) -> None:
        """남은 알림 전송 후 notifier 정리"""
        await self.drain()
        if self.notifier is not None:
            await self.notifier.close()

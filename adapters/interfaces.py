"""
외부 연동 인터페이스

엔진/웹 계층은 이 Protocol에만 의존한다.
운영에서는 SlackNotifier, 테스트에서는 MockNotifier를 주입.
"""

from decimal import Decimal
from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class INotifier(Protocol):
    """알림 서비스 인터페이스

    결제 완료, 다음 차례 안내 등을 외부 서비스로 전송.
    구현체는 예외를 던지지 않고 전송 성공 여부만 반환해야 함.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR)
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...

    async def send_turn_alert(
        self,
        next_up: Sequence[str],
        payers: Sequence[str] | None = None,
        amount: Decimal | None = None,
    ) -> bool:
        """순번 알림 전송 (포맷팅된 메시지)

        payers/amount가 있으면 결제 감사 메시지, 없으면 다음 차례 안내만 전송.

        Args:
            next_up: 다음 결제 차례 이름
            payers: 방금 결제한 이름 (선택)
            amount: 결제 금액 (선택)

        Returns:
            전송 성공 여부
        """
        ...

    async def close(self) -> None:
        """리소스 정리"""
        ...

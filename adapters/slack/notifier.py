"""
Slack 알림

Incoming Webhook으로 결제 감사/다음 차례 메시지를 보낸다.
전송 실패는 예외 대신 False로 반환 (INotifier 계약).
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Sequence

import httpx

from core.types import NotifyLevel

logger = logging.getLogger(__name__)


# 레벨별 (이모지, attachment 색상)
LEVEL_STYLE: dict[str, tuple[str, str]] = {
    NotifyLevel.INFO.value: (":white_check_mark:", "#36A64F"),
    NotifyLevel.WARNING.value: (":warning:", "#FFA500"),
    NotifyLevel.ERROR.value: (":x:", "#FF0000"),
}
DEFAULT_STYLE = (":bell:", "#808080")

# 순번 알림 attachment 색상 (chai)
TURN_COLOR = "#C68642"


def _join(names: Sequence[str]) -> str:
    return " & ".join(names) if names else "N/A"


def format_turn_message(
    next_up: Sequence[str],
    payers: Sequence[str] | None = None,
    amount: Decimal | None = None,
) -> str:
    """순번 알림 본문

    결제자가 있으면 감사 문구 + 다음 차례, 없으면 다음 차례만.
    """
    if not payers:
        return f":bell: *Next turn:* {_join(next_up)}"

    amount_text = f" (₹{amount})" if amount is not None else ""
    return (
        f":tea: Thanks to *{_join(payers)}* for the chaii!{amount_text} :tada:"
        f"\n\n*Next turn:* {_join(next_up)}"
    )


def _field(title: str, value: Any, short: bool = True) -> dict[str, Any]:
    return {"title": title, "value": str(value), "short": short}


class SlackNotifier:
    """Slack Webhook 알림 (INotifier 구현)

    사용 예시:
    ```python
    async with SlackNotifier(webhook_url="https://hooks.slack.com/...") as notifier:
        await notifier.send_turn_alert(
            next_up=["Vasu and Naman", "Ashwin and Rohit"],
            payers=["Tapish and Shashank", "Sarthak and Devansh"],
            amount=Decimal("150"),
        )
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        username: str = "ChaiiLedger",
        timeout: float = 10.0,
    ):
        """
        Args:
            webhook_url: Slack Incoming Webhook URL
            channel: 채널 오버라이드 (None이면 Webhook 기본 채널)
            username: 발송자 표시 이름
            timeout: 요청 타임아웃 (초)
        """
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """공유 HTTP 클라이언트 (처음 사용할 때 생성)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None and not client.is_closed:
            await client.aclose()

    async def send(
        self,
        message: str,
        level: str = NotifyLevel.INFO.value,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """레벨 표시가 붙은 일반 알림

        extra 항목은 attachment fields로 표시.
        """
        emoji, color = LEVEL_STYLE.get(level, DEFAULT_STYLE)
        attachment: dict[str, Any] = {
            "color": color,
            "text": f"{emoji} *[{level}]* {message}",
            "footer": self._footer(),
        }
        if extra:
            attachment["fields"] = [_field(key, value) for key, value in extra.items()]

        return await self._post(message, attachment)

    async def send_turn_alert(
        self,
        next_up: Sequence[str],
        payers: Sequence[str] | None = None,
        amount: Decimal | None = None,
    ) -> bool:
        """결제 감사 / 다음 차례 알림"""
        fields = []
        if payers:
            fields.append(_field("Paid by", _join(payers)))
        if amount is not None:
            fields.append(_field("Amount", amount))
        fields.append(_field("Next turn", _join(next_up), short=False))

        text = format_turn_message(next_up, payers, amount)
        attachment = {
            "color": TURN_COLOR,
            "text": text,
            "fields": fields,
            "footer": self._footer(),
        }
        return await self._post(text, attachment)

    async def _post(self, fallback: str, attachment: dict[str, Any]) -> bool:
        """Webhook 전송

        text는 모바일 푸시/미리보기에 쓰이는 fallback.

        Returns:
            HTTP 200이면 True
        """
        payload: dict[str, Any] = {
            "username": self.username,
            "text": fallback,
            "attachments": [attachment],
        }
        if self.channel:
            payload["channel"] = self.channel

        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException:
            logger.error(f"Slack 전송 타임아웃 ({self.timeout}s)")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Slack 전송 HTTP 에러: {e}")
            return False
        except Exception as e:
            logger.exception(f"Slack 전송 중 예외: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Slack 전송 실패: status={response.status_code}, body={response.text}")
            return False

        logger.info("Slack 전송 완료")
        return True

    @staticmethod
    def _footer() -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        return f"ChaiiLedger | {stamp}"

    async def __aenter__(self) -> "SlackNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

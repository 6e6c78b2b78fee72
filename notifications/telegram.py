"""Telegram alert delivery for high-confidence signals."""

from __future__ import annotations

import html

import httpx
import structlog

from core.config import Settings
from schemas.signal import SignalType, TradingSignal

logger = structlog.get_logger(__name__)

_EMOJI = {SignalType.BUY: "🟢", SignalType.SELL: "🔴", SignalType.HOLD: "⚪"}


def format_signal_alert(signal: TradingSignal) -> str:
    """HTML message body for one signal."""
    metrics = signal.metrics
    return (
        f"{_EMOJI[signal.signal]} <b>{signal.signal.value} SIGNAL: {signal.symbol}</b>\n\n"
        f"<b>Confidence:</b> {signal.confidence}%\n"
        f"<b>Reasoning:</b> {html.escape(signal.reasoning)}\n\n"
        "<b>Metrics:</b>\n"
        f"• AltRank: {metrics.alt_rank}\n"
        f"• Galaxy Score: {metrics.galaxy_score}\n"
        f"• Mentions: {metrics.mentions}\n\n"
        f"#{signal.symbol} #Crypto #TradingSignal"
    )


class TelegramNotifier:
    """Best-effort Telegram bot sender. Never raises on delivery failure."""

    api_base = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> TelegramNotifier:
        return cls(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            timeout=settings.default_timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send_message(self, text: str) -> bool:
        """Send an HTML message to the configured chat."""
        if not self.configured:
            logger.warning("telegram credentials not configured, skipping message")
            return False

        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        body = {"chat_id": self.chat_id, "text": text, "parse_mode": "HTML"}

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                response = await client.post(url, json=body)
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("failed to send telegram message", error=str(e))
            return False

        if not data.get("ok"):
            logger.error("telegram api error", response=data)
            return False

        return True

    async def send_signal_alert(self, signal: TradingSignal) -> bool:
        return await self.send_message(format_signal_alert(signal))

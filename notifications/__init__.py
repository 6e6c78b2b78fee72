"""Alert delivery for high-confidence signals."""

from notifications.telegram import TelegramNotifier, format_signal_alert

__all__ = ["TelegramNotifier", "format_signal_alert"]

"""
Telegram Alerts
===============

Optional forwarding of fired alerts to a Telegram chat, next to the
workflow outputs. Delivery failures are logged and never fail the run.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import requests

from ..models import Alert, format_timestamp
from .base import AlertSink, ordered

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


@dataclass
class AlertConfig:
    """Configuration for alert sending."""
    bot_token: str
    chat_id: str
    dry_run: bool = False
    max_message_length: int = 4000
    timeout_sec: float = 10.0


class TelegramAlerts(AlertSink):
    """
    Telegram alert sender.

    Sends one message per run containing every fired alert.
    """

    def __init__(self, config: AlertConfig):
        """
        Initialize Telegram alerts.

        Args:
            config: AlertConfig with bot token, chat ID, and settings
        """
        self.config = config
        self._validate()

    @classmethod
    def from_env(cls, dry_run: bool = False) -> Optional["TelegramAlerts"]:
        """
        Create TelegramAlerts from environment variables.

        Returns:
            TelegramAlerts instance if configured (or dry run), None otherwise
        """
        bot_token = os.environ.get("TELEGRAM_BOT_TOKEN", "")
        chat_id = os.environ.get("TELEGRAM_CHAT_ID", "")

        if not dry_run and not (bot_token and chat_id):
            logger.debug("Telegram not configured (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID)")
            return None

        return cls(AlertConfig(bot_token=bot_token, chat_id=chat_id, dry_run=dry_run))

    def _validate(self):
        """Validate configuration."""
        if not self.config.dry_run:
            if not self.config.bot_token:
                raise ValueError("TELEGRAM_BOT_TOKEN is required (or use --dry-run)")
            if not self.config.chat_id:
                raise ValueError("TELEGRAM_CHAT_ID is required (or use --dry-run)")

    def _truncate_message(self, text: str) -> str:
        """Truncate message to Telegram's character limit."""
        if len(text) > self.config.max_message_length:
            return text[:self.config.max_message_length - 20] + "\n... (truncated)"
        return text

    def format_message(self, alerts: Sequence[Alert], timestamp: datetime) -> str:
        lines = ["CONTRACT WATCH ALERT", ""]
        for alert in ordered(alerts):
            lines.append(f"[{alert.category.value.upper()}] {alert.message}")
        lines.append("")
        lines.append(format_timestamp(timestamp))
        return self._truncate_message("\n".join(lines))

    def send_message(self, text: str) -> Optional[int]:
        """
        Send a message via Telegram Bot API.

        Returns:
            message_id if successful, None otherwise
        """
        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would send Telegram message:\n{text}")
            return None

        url = f"{TELEGRAM_API_URL}/bot{self.config.bot_token}/sendMessage"
        payload = {"chat_id": self.config.chat_id, "text": text}

        try:
            response = requests.post(url, json=payload, timeout=self.config.timeout_sec)
            response.raise_for_status()
            message_id = response.json()["result"]["message_id"]
        except requests.exceptions.Timeout:
            logger.error("Telegram request timed out")
            return None
        except requests.exceptions.HTTPError as e:
            # Log status code without exposing token in URL
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"Telegram HTTP error: {status_code}")
            return None
        except requests.exceptions.RequestException:
            logger.error("Telegram request failed")
            return None
        except (ValueError, KeyError, TypeError) as e:
            # Delivered, but the reply is not the documented JSON shape
            logger.warning(f"Unexpected Telegram response: {type(e).__name__}")
            return None

        logger.info(f"Telegram alert sent successfully (message_id: {message_id})")
        return message_id

    def publish(self, alerts: Sequence[Alert], timestamp: datetime):
        if not alerts:
            return
        self.send_message(self.format_message(alerts, timestamp))

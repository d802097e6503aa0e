"""
Messaging integrations: Telegram bots, Discord and Slack webhooks.
"""

from typing import Any, Dict, Optional, Union

from pydantic import field_validator

from aion.engine.errors import ExternalCallError
from aion.engine.models import ContextView
from aion.integrations import base
from aion.integrations.base import ActionConfig, Text, require
from aion.integrations.registry import Integration


TELEGRAM_API = "https://api.telegram.org/bot{token}/{method}"
DISCORD_MAX_LENGTH = 2000


# ============================================================
# Telegram
# ============================================================

telegram = Integration(
    id="telegram",
    name="Telegram",
    category="social",
    description="Send messages through a Telegram bot",
)


class TelegramMessageConfig(ActionConfig):
    bot_token: Text = None
    chat_id: Optional[Union[int, str]] = None
    content: Text = None
    text: Text = None
    parse_mode: Text = None

    @field_validator("chat_id", mode="before")
    @classmethod
    def strip_chat_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def message(self) -> Optional[str]:
        return self.content or self.text


@telegram.action("send_message", "Send Message", config=TelegramMessageConfig)
async def telegram_send_message(config: TelegramMessageConfig, context: ContextView) -> Dict[str, Any]:
    """Send a text message to a chat."""
    require(config.bot_token, "Telegram Bot Token is required")
    require(config.chat_id, "Telegram Chat ID is required")
    require(config.message, "Message Content is required")

    payload: Dict[str, Any] = {"chat_id": config.chat_id, "text": config.message}
    if config.parse_mode:
        payload["parse_mode"] = config.parse_mode

    response = await base.send(
        "Telegram",
        "POST",
        TELEGRAM_API.format(token=config.bot_token, method="sendMessage"),
        json=payload,
    )
    data = base.json_body("Telegram", response)

    # The Bot API reports some failures with HTTP 200 and ok=false
    if not isinstance(data, dict) or not data.get("ok"):
        description = data.get("description") if isinstance(data, dict) else None
        raise ExternalCallError("Telegram", description or "Unknown error", response.status_code)

    return {"sent_message": data.get("result")}


# ============================================================
# Discord / Slack
# ============================================================

discord = Integration(
    id="discord",
    name="Discord",
    category="social",
    description="Post to a Discord channel webhook",
)


class DiscordMessageConfig(ActionConfig):
    webhook_url: Text = None
    content: Text = None
    username: Text = None


@discord.action("send_message", "Send Message", config=DiscordMessageConfig)
async def discord_send_message(config: DiscordMessageConfig, context: ContextView) -> Dict[str, Any]:
    """Post a message through a channel webhook."""
    require(config.webhook_url, "Discord Webhook URL is required")
    require(config.content, "Message Content is required")

    payload: Dict[str, Any] = {"content": config.content[:DISCORD_MAX_LENGTH]}
    if config.username:
        payload["username"] = config.username

    response = await base.send("Discord", "POST", config.webhook_url, json=payload)
    return {"sent": True, "status": response.status_code}


slack = Integration(
    id="slack",
    name="Slack",
    category="social",
    description="Post to Slack via an incoming webhook",
)


class SlackMessageConfig(ActionConfig):
    webhook_url: Text = None
    text: Text = None
    channel: Text = None
    username: Text = None


@slack.action("send_message", "Send Message", config=SlackMessageConfig)
async def slack_send_message(config: SlackMessageConfig, context: ContextView) -> Dict[str, Any]:
    require(config.webhook_url, "Slack Webhook URL is required")
    require(config.text, "Message Text is required")

    payload: Dict[str, Any] = {"text": config.text}
    if config.channel:
        payload["channel"] = config.channel
    if config.username:
        payload["username"] = config.username

    response = await base.send("Slack", "POST", config.webhook_url, json=payload)
    return {"sent": True, "status": response.status_code}

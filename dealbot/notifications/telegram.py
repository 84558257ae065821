from __future__ import annotations

from typing import Optional, Union

from loguru import logger
from telegram import Bot, LinkPreviewOptions, ReplyParameters
from telegram.constants import ChatMemberStatus, ParseMode
from telegram.error import TelegramError

from dealbot.config import get_settings

ChatId = Union[int, str]

_NOT_MEMBER = {ChatMemberStatus.LEFT, ChatMemberStatus.BANNED}


class TelegramGateway:
    """Outbound side of the Telegram bot: messages and membership lookups."""

    def __init__(self, bot: Bot):
        self.bot = bot
        self.alert_chat_id = get_settings().alert_chat_id

    @classmethod
    def is_configured(cls) -> bool:
        """Check if the bot token is set."""
        return bool(get_settings().telegram_bot_token)

    async def send(
        self,
        chat_id: ChatId,
        text: str,
        reply_to: Optional[int] = None,
        disable_preview: bool = True,
        best_effort: bool = False,
    ) -> bool:
        """Send an HTML message.

        Args:
            chat_id: Target chat.
            text: Message body in Telegram HTML.
            reply_to: Message id to reply to, if any.
            disable_preview: Suppress link previews.
            best_effort: Log and swallow Telegram errors instead of raising.

        Returns:
            True if sent, False if a best-effort send failed.
        """
        reply_parameters = (
            ReplyParameters(message_id=reply_to, allow_sending_without_reply=True)
            if reply_to is not None
            else None
        )
        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=ParseMode.HTML,
                link_preview_options=LinkPreviewOptions(is_disabled=disable_preview),
                reply_parameters=reply_parameters,
            )
        except TelegramError as e:
            if not best_effort:
                raise
            logger.warning(f"Telegram send to chat {chat_id} failed: {e}")
            return False
        return True

    async def is_member(self, chat_id: ChatId, user_id: int) -> bool:
        """Whether the user is currently in the chat. Lookup failures count as no."""
        try:
            member = await self.bot.get_chat_member(chat_id=chat_id, user_id=user_id)
        except TelegramError as e:
            logger.debug(f"Membership lookup for {user_id} in {chat_id} failed: {e}")
            return False
        if member.status == ChatMemberStatus.RESTRICTED and not member.is_member:
            return False
        return member.status not in _NOT_MEMBER

    async def send_operator_alert(self, text: str) -> bool:
        """Best-effort message to the operator channel, if one is configured."""
        if not self.alert_chat_id:
            logger.warning("No alert chat configured, operator alert not sent")
            return False
        return await self.send(
            self.alert_chat_id, text, disable_preview=True, best_effort=True
        )

"""
Free-text message handler - routes plain chat messages through the chat service
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.services.chat_service import ChatService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


async def text_message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Answer a non-command text message"""
    if update.message is None or not update.message.text:
        return

    user_id = str(update.effective_user.id)
    chat: ChatService = context.bot_data["chat"]

    reply = await chat.handle_chat(user_id, update.message.text)
    await update.message.reply_text(reply[:MAX_MESSAGE_LENGTH])

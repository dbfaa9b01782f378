"""
/recommend command - AI suggestions based on the user's current state
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.services.chat_service import ChatService

logger = logging.getLogger(__name__)


async def recommend_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show up to five suggestions"""
    user_id = str(update.effective_user.id)
    chat: ChatService = context.bot_data["chat"]

    suggestions = await chat.recommendations(user_id)
    if not suggestions:
        await update.message.reply_text("💡 No recommendations right now.")
        return

    await update.message.reply_text(
        "💡 Recommendations\n\n" + "\n".join(f"• {s}" for s in suggestions)
    )

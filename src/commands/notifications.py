"""
/notifications command - Show the user's in-app notifications, then clear them
"""

import html
import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine

logger = logging.getLogger(__name__)


async def notifications_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show and clear notifications"""
    user_id = str(update.effective_user.id)
    engine: ArbitrationEngine = context.bot_data["engine"]

    # Anything queued after this point stays for the next /notifications
    notifications = await engine.take_notifications(user_id)
    if not notifications:
        await update.message.reply_text("🔔 No new notifications.")
        return

    logger.info(f"Showing {len(notifications)} notifications to user {user_id}")
    message = "🔔 <b>Notifications</b>\n\n"
    message += "\n".join(f"• {html.escape(n)}" for n in notifications)
    await update.message.reply_text(message, parse_mode="HTML")

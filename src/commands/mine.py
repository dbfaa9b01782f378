"""
/mine command - Show the user's active assignments and waitlist entries
"""

import html
import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine
from src.formatting import format_assignment_line

logger = logging.getLogger(__name__)


async def mine_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show user's active assignments"""
    user_id = str(update.effective_user.id)
    engine: ArbitrationEngine = context.bot_data["engine"]

    assignments = await engine.list_my_assignments(user_id)

    if not assignments:
        await update.message.reply_text(
            "📋 <b>No Assignments</b>\n\n"
            "You don't hold any resources right now.\n"
            "Use /resources to see what is available.",
            parse_mode="HTML",
        )
        return

    message = "📋 <b>Your Assignments</b>\n\n"
    for assignment in assignments:
        message += f"• {html.escape(format_assignment_line(assignment))}\n"
    message += f"\n<b>Total:</b> {len(assignments)} assignment(s)"

    await update.message.reply_text(message, parse_mode="HTML")

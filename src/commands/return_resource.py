"""
/return command - Give a resource back; the next waiting user gets it
"""

import html
import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine

logger = logging.getLogger(__name__)


async def return_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /return <id>"""
    user_id = str(update.effective_user.id)
    engine: ArbitrationEngine = context.bot_data["engine"]

    if not context.args or len(context.args) != 1:
        await update.message.reply_text(
            "❌ Usage: <code>/return &lt;id&gt;</code>\n\n"
            "Use /mine to see what you hold.",
            parse_mode="HTML",
        )
        return

    result = await engine.return_resource(context.args[0].upper(), user_id)
    icon = "✅" if result.ok else "❌"
    await update.message.reply_text(f"{icon} {html.escape(result.message)}", parse_mode="HTML")

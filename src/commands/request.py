"""
/request command - Request a unit of a resource or join its waitlist
"""

import html
import logging
from datetime import datetime, timezone
from typing import Optional
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine

logger = logging.getLogger(__name__)


def parse_due_date(value: str) -> datetime:
    """
    Parse a return date argument.

    A bare YYYY-MM-DD means the end of that day (UTC); full ISO timestamps
    are taken as given, naive ones as UTC.

    Raises:
        ValueError: if the value is not a valid date
    """
    if len(value) == 10:
        day = datetime.strptime(value, "%Y-%m-%d")
        return day.replace(hour=23, minute=59, second=59, tzinfo=timezone.utc)

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def request_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /request <id> [YYYY-MM-DD]"""
    user_id = str(update.effective_user.id)
    engine: ArbitrationEngine = context.bot_data["engine"]

    if not context.args or len(context.args) > 2:
        await update.message.reply_text(
            "❌ Usage: <code>/request &lt;id&gt; [YYYY-MM-DD]</code>\n\n"
            "Example: <code>/request P1 2026-10-20</code>\n"
            "Use /resources to see resource ids.",
            parse_mode="HTML",
        )
        return

    resource_id = context.args[0].upper()
    due_return_at: Optional[datetime] = None

    if len(context.args) == 2:
        try:
            due_return_at = parse_due_date(context.args[1])
        except ValueError:
            await update.message.reply_text(
                "❌ Invalid date format. Please use YYYY-MM-DD\n\n"
                "Example: <code>/request P1 2026-10-20</code>",
                parse_mode="HTML",
            )
            return

    result = await engine.request_resource(resource_id, user_id, due_return_at)

    if result.granted:
        icon = "✅"
    elif result.waitlist_position is not None:
        icon = "⏳"
    else:
        icon = "❌"

    await update.message.reply_text(f"{icon} {html.escape(result.message)}", parse_mode="HTML")

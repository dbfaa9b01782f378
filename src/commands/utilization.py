"""
/utilization command - Daily allocated-vs-total ratios
"""

import logging
from datetime import datetime
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine
from src.formatting import format_utilization

logger = logging.getLogger(__name__)


def _is_date(value: str) -> bool:
    try:
        datetime.strptime(value, "%Y-%m-%d")
        return True
    except ValueError:
        return False


async def utilization_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /utilization [id] [from] [to]"""
    engine: ArbitrationEngine = context.bot_data["engine"]
    args = list(context.args or [])

    resource_id = None
    if args and not _is_date(args[0]):
        resource_id = args.pop(0).upper()

    if len(args) > 2 or not all(_is_date(a) for a in args):
        await update.message.reply_text(
            "❌ Usage: /utilization [id] [YYYY-MM-DD] [YYYY-MM-DD]\n\n"
            "Without dates, today's snapshot is shown; a single date runs through today."
        )
        return

    date_from = args[0] if args else None
    date_to = args[1] if len(args) > 1 else None

    records = await engine.get_utilization(resource_id, date_from, date_to)
    await update.message.reply_text(f"📊 Utilization\n\n{format_utilization(records)}")

"""
/stats command - Pool and reminder-sweep statistics
"""

import logging
from datetime import datetime, timezone
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine
from src.services.reminder_scheduler import get_stats

logger = logging.getLogger(__name__)


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show bot statistics"""
    stats = get_stats()
    engine: ArbitrationEngine = context.bot_data["engine"]

    uptime = "N/A"
    if stats["bot_start_time"]:
        uptime_seconds = (datetime.now(timezone.utc) - stats["bot_start_time"]).total_seconds()
        hours = int(uptime_seconds // 3600)
        minutes = int((uptime_seconds % 3600) // 60)
        uptime = f"{hours}h {minutes}m"

    resources = await engine.list_resources()
    total_units = sum(r.quantity for r in resources)
    free_units = sum(r.available for r in resources)

    message = (
        "📈 <b>Pool Statistics</b>\n\n"
        f"⏱ Uptime: {uptime}\n"
        f"📋 Resources: {len(resources)}\n"
        f"🔓 Free units: {free_units}/{total_units}\n\n"
        f"🔁 Reminder sweeps: {stats['total_sweeps']}\n"
        f"❌ Failed sweeps: {stats['failed_sweeps']}\n"
        f"🔔 Reminders sent: {stats['reminders_sent']}\n"
    )

    if stats["last_sweep_time"]:
        message += f"\n⏰ Last sweep: {stats['last_sweep_time'].strftime('%Y-%m-%d %H:%M:%S')} UTC"

    await update.message.reply_text(message, parse_mode="HTML")

"""
/resources command - List the catalog with free units
"""

import html
import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.engine import ArbitrationEngine
from src.models import ResourceType

logger = logging.getLogger(__name__)

TYPE_ICONS = {
    ResourceType.PARKING: "🅿️",
    ResourceType.LICENSE: "🔑",
    ResourceType.EQUIPMENT: "📦",
}


async def resources_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resources [type]"""
    engine: ArbitrationEngine = context.bot_data["engine"]

    type_filter = None
    if context.args:
        try:
            type_filter = ResourceType(context.args[0].lower())
        except ValueError:
            valid = ", ".join(t.value for t in ResourceType)
            await update.message.reply_text(
                f"❌ Unknown resource type. Valid types: {valid}"
            )
            return

    resources = await engine.list_resources(type_filter)
    if not resources:
        await update.message.reply_text("No resources found.")
        return

    message = "📋 <b>Resources</b>\n\n"
    for r in resources:
        icon = TYPE_ICONS.get(r.type, "•")
        message += (
            f"{icon} <b>{html.escape(r.id)}</b> {html.escape(r.name)}: "
            f"{r.available}/{r.quantity} available\n"
        )
        if r.metadata:
            details = ", ".join(f"{k}: {v}" for k, v in r.metadata.items())
            message += f"   {html.escape(details)}\n"

    await update.message.reply_text(message, parse_mode="HTML")

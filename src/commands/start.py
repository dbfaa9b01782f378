"""
/start and /help commands - Welcome message and command reference
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "📚 <b>Commands</b>\n\n"
    "<b>/resources</b> [type] - List resources and free units\n"
    "<b>/request</b> &lt;id&gt; [YYYY-MM-DD] - Request a resource (optional return date)\n"
    "<b>/return</b> &lt;id&gt; - Return a resource you hold\n"
    "<b>/mine</b> - Show what you currently hold\n"
    "<b>/utilization</b> [id] [from] [to] - Daily utilization\n"
    "<b>/notifications</b> - Show and clear your notifications\n"
    "<b>/recommend</b> - Suggestions based on your assignments\n"
    "<b>/help</b> - Show this help message\n\n"
    "💡 You can also just write, e.g. <i>request P1</i> or <i>what do I have</i>.\n"
    "When a resource is taken you join its waitlist and get it automatically "
    "as soon as it is returned."
)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /start command"""
    user = update.effective_user
    logger.info(f"User {user.id} started the bot")

    welcome_msg = (
        "👋 <b>Welcome to the Resource Pool Bot!</b>\n\n"
        "I keep track of shared parking spots, licenses and equipment, "
        "hand them out when they are free and queue you up when they are not.\n\n"
        f"{HELP_TEXT}"
    )
    await update.message.reply_text(welcome_msg, parse_mode="HTML")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show command reference"""
    await update.message.reply_text(HELP_TEXT, parse_mode="HTML")

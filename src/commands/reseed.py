"""
/reseed command - Restore the default catalog (admin only)
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from src.config import get_config
from src.engine import ArbitrationEngine
from src.models import DEFAULT_RESOURCES

logger = logging.getLogger(__name__)


async def reseed_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Replace the catalog with the default resource set"""
    user_id = update.effective_user.id
    admin_id = get_config().admin_telegram_id

    if admin_id is None or user_id != admin_id:
        logger.warning(f"User {user_id} attempted /reseed without admin rights")
        await update.message.reply_text("❌ Only the administrator can reseed the catalog.")
        return

    engine: ArbitrationEngine = context.bot_data["engine"]
    await engine.reseed(DEFAULT_RESOURCES)
    await update.message.reply_text(
        f"✅ Catalog reseeded with {len(DEFAULT_RESOURCES)} default resources."
    )

"""
Resource Pool Bot - Main Entry Point
Wires the arbitration engine, collaborators, commands and handlers together.
"""
import logging
from telegram import BotCommand
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from src.config import get_config
from src.database import init_database, close_database
from src.engine import ArbitrationEngine
from src.store import PoolStore

# Import commands
from src.commands.start import start_command, help_command
from src.commands.request import request_command
from src.commands.return_resource import return_command
from src.commands.mine import mine_command
from src.commands.resources import resources_command
from src.commands.utilization import utilization_command
from src.commands.notifications import notifications_command
from src.commands.recommend import recommend_command
from src.commands.reseed import reseed_command
from src.commands.stats import stats_command

# Import handlers
from src.handlers.messages import text_message_handler

# Import services
from src.services.assistant import AssistantClient
from src.services.chat_service import ChatService
from src.services.notification_service import NotificationService
from src.services.reminder_scheduler import reminder_loop, set_bot_start_time

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Post-initialization callback - build the pool, set commands, start the sweep"""
    config = get_config()
    set_bot_start_time()

    notifier = NotificationService.from_config(config, bot=application.bot)
    engine = ArbitrationEngine(
        PoolStore(config.pool_name),
        notifier=notifier,
        reminder_hours_ahead=config.reminder_hours_ahead,
        conversation_cap=config.conversation_cap,
    )
    await engine.start()

    application.bot_data["notifier"] = notifier
    application.bot_data["engine"] = engine
    application.bot_data["chat"] = ChatService(engine, AssistantClient.from_config(config))

    # Set bot commands for menu
    commands = [
        BotCommand("start", "Start the bot"),
        BotCommand("resources", "List resources and availability"),
        BotCommand("request", "Request a resource"),
        BotCommand("return", "Return a resource"),
        BotCommand("mine", "Show your assignments"),
        BotCommand("utilization", "Show utilization"),
        BotCommand("notifications", "Show and clear notifications"),
        BotCommand("recommend", "Get suggestions"),
        BotCommand("stats", "Show pool statistics"),
        BotCommand("help", "Show help"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands set")

    # Start background task for reminders and utilization snapshots
    application.create_task(reminder_loop(application, engine, config.reminder_hour))
    logger.info("Background reminder sweep started")


async def post_shutdown(application: Application) -> None:
    """Flush pending notifications and release connections"""
    engine = application.bot_data.get("engine")
    if engine is not None:
        await engine.drain()
    notifier = application.bot_data.get("notifier")
    if notifier is not None:
        await notifier.close()
    close_database()


def main() -> None:
    """Start the bot"""
    config = get_config()

    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=config.log_level
    )

    # Initialize database
    logger.info("Initializing database...")
    init_database()

    # Create application
    application = (
        Application.builder()
        .token(config.telegram_bot_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Register command handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("request", request_command))
    application.add_handler(CommandHandler("return", return_command))
    application.add_handler(CommandHandler("mine", mine_command))
    application.add_handler(CommandHandler("resources", resources_command))
    application.add_handler(CommandHandler("utilization", utilization_command))
    application.add_handler(CommandHandler("notifications", notifications_command))
    application.add_handler(CommandHandler("recommend", recommend_command))
    application.add_handler(CommandHandler("reseed", reseed_command))
    application.add_handler(CommandHandler("stats", stats_command))

    # Free text goes through the chat service
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, text_message_handler))

    # Start bot
    logger.info("Starting bot...")
    application.run_polling(allowed_updates=["message"])


if __name__ == '__main__':
    main()

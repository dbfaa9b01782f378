"""
Reminder scheduler - background task running the daily return-reminder sweep.
The sweep also records the day's utilization snapshot.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from telegram.ext import Application

from src.config import get_config
from src.engine import ArbitrationEngine

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_FAILURES = 3
RETRY_DELAY_SECONDS = 300

# Global stats tracking
stats = {
    "total_sweeps": 0,
    "failed_sweeps": 0,
    "reminders_sent": 0,
    "last_sweep_time": None,
    "bot_start_time": None,
}


def get_stats() -> dict:
    """Get current statistics"""
    return stats


def set_bot_start_time() -> None:
    """Set bot start time in stats"""
    stats["bot_start_time"] = datetime.now(timezone.utc)


def seconds_until_next_run(now: datetime, hour: int, last_run_date: Optional[date] = None) -> float:
    """
    Seconds from `now` until the next occurrence of `hour`:00 UTC.

    A day that already had a sweep is skipped, so an early wake-up never
    schedules a second sweep for the same day.
    """
    now = now.astimezone(timezone.utc)
    next_run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    while last_run_date is not None and next_run.date() <= last_run_date:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


async def send_health_alert(application: Application, message: str) -> None:
    """Send health alert to admin if configured"""
    config = get_config()
    if config.admin_telegram_id:
        try:
            await application.bot.send_message(
                chat_id=config.admin_telegram_id,
                text=f"⚠️ Health Alert\n\n{message}",
            )
            logger.info(f"Sent health alert to admin {config.admin_telegram_id}")
        except Exception as e:
            logger.error(f"Failed to send health alert: {e}")


async def run_sweep(engine: ArbitrationEngine) -> int:
    """Run one reminder sweep and update stats"""
    stats["total_sweeps"] += 1
    stats["last_sweep_time"] = datetime.now(timezone.utc)
    reminders = await engine.check_return_reminders()
    stats["reminders_sent"] += reminders
    return reminders


async def reminder_loop(
    application: Application,
    engine: ArbitrationEngine,
    hour: Optional[int] = None,
) -> None:
    """
    Background task: sleep until the configured hour, run the sweep, repeat.
    Failures are logged and retried; the admin is alerted after repeated failures.
    """
    if hour is None:
        hour = get_config().reminder_hour
    consecutive_failures = 0
    last_run_date: Optional[date] = None

    while True:
        delay = seconds_until_next_run(datetime.now(timezone.utc), hour, last_run_date)
        if consecutive_failures:
            delay = min(delay, RETRY_DELAY_SECONDS)
        logger.info(f"Next reminder sweep in {int(delay)} seconds")
        await asyncio.sleep(delay)

        try:
            await run_sweep(engine)
            consecutive_failures = 0
            last_run_date = datetime.now(timezone.utc).date()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            stats["failed_sweeps"] += 1
            consecutive_failures += 1
            logger.error(f"Reminder sweep failed ({consecutive_failures} in a row): {e}")

            if consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                await send_health_alert(
                    application,
                    f"Reminder sweep has failed {consecutive_failures} times in a row!\n"
                    f"Last error: {e}",
                )

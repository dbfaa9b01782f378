"""
Tests for Telegram command handlers and the reminder scheduler
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, Mock, patch

from src.commands.mine import mine_command
from src.commands.notifications import notifications_command
from src.commands.recommend import recommend_command
from src.commands.request import parse_due_date, request_command
from src.commands.reseed import reseed_command
from src.commands.resources import resources_command
from src.commands.return_resource import return_command
from src.commands.start import HELP_TEXT, help_command, start_command
from src.commands.stats import stats_command
from src.commands.utilization import utilization_command
from src.handlers.messages import MAX_MESSAGE_LENGTH, text_message_handler
from src.models import Resource, ResourceType
from src.services import reminder_scheduler
from src.services.chat_service import ChatService
from src.services.reminder_scheduler import run_sweep, seconds_until_next_run


def make_update(user_id=111, text=None):
    update = Mock()
    update.effective_user.id = user_id
    update.message.text = text
    update.message.reply_text = AsyncMock()
    return update


def make_context(engine, args=None, chat=None):
    context = Mock()
    context.args = args or []
    context.bot_data = {"engine": engine, "chat": chat or ChatService(engine)}
    return context


def reply_of(update) -> str:
    return update.message.reply_text.call_args[0][0]


class TestParseDueDate:
    """Tests for return-date parsing"""

    def test_bare_date_is_end_of_day(self):
        assert parse_due_date("2026-10-20") == datetime(
            2026, 10, 20, 23, 59, 59, tzinfo=timezone.utc
        )

    def test_naive_timestamp_is_utc(self):
        assert parse_due_date("2026-10-20T12:30:00") == datetime(
            2026, 10, 20, 12, 30, tzinfo=timezone.utc
        )

    def test_aware_timestamp_kept(self):
        parsed = parse_due_date("2026-10-20T12:30:00+02:00")
        assert parsed.utcoffset().total_seconds() == 7200

    @pytest.mark.parametrize("value", ["tomorrow", "2026-13-01", "20-10-2026"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_due_date(value)


class TestStartAndHelp:
    """Tests for /start and /help"""

    @pytest.mark.asyncio
    async def test_start(self, engine):
        update = make_update()
        await start_command(update, make_context(engine))
        assert "Welcome" in reply_of(update)
        assert HELP_TEXT in reply_of(update)

    @pytest.mark.asyncio
    async def test_help(self, engine):
        update = make_update()
        await help_command(update, make_context(engine))
        assert reply_of(update) == HELP_TEXT


class TestRequestAndReturnCommands:
    """Tests for /request and /return"""

    @pytest.mark.asyncio
    async def test_request_grants(self, engine):
        update = make_update()
        await request_command(update, make_context(engine, ["p1", "2026-10-20"]))

        assert reply_of(update) == "✅ Assigned Parking Spot 1 to you."
        [assignment] = await engine.list_my_assignments("111")
        assert assignment.due_return_at == datetime(2026, 10, 20, 23, 59, 59, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_request_waitlists(self, engine):
        await engine.request_resource("P1", "999")
        update = make_update()

        await request_command(update, make_context(engine, ["P1"]))

        assert reply_of(update).startswith("⏳ No availability.")

    @pytest.mark.asyncio
    async def test_request_unknown(self, engine):
        update = make_update()
        await request_command(update, make_context(engine, ["ZZ"]))
        assert reply_of(update) == "❌ Unknown resource: ZZ"

    @pytest.mark.asyncio
    async def test_request_usage(self, engine):
        update = make_update()
        await request_command(update, make_context(engine))
        assert "Usage" in reply_of(update)

    @pytest.mark.asyncio
    async def test_request_bad_date(self, engine):
        update = make_update()
        await request_command(update, make_context(engine, ["P1", "soon"]))

        assert "Invalid date" in reply_of(update)
        assert await engine.list_my_assignments("111") == []

    @pytest.mark.asyncio
    async def test_return_hands_over(self, engine, notifier):
        await engine.request_resource("P1", "111")
        await engine.request_resource("P1", "222")
        update = make_update()

        await return_command(update, make_context(engine, ["p1"]))
        await engine.drain()

        assert reply_of(update) == "✅ Returned. Next in line (222) was auto-assigned."
        assert "Parking Spot 1 is now assigned to you." in notifier.messages_for("222")

    @pytest.mark.asyncio
    async def test_return_without_assignment(self, engine):
        update = make_update()
        await return_command(update, make_context(engine, ["P1"]))
        assert reply_of(update) == "❌ No active assignment found for P1 and you."

    @pytest.mark.asyncio
    async def test_return_usage(self, engine):
        update = make_update()
        await return_command(update, make_context(engine, ["P1", "P2"]))
        assert "Usage" in reply_of(update)


class TestListingCommands:
    """Tests for /mine, /resources, /utilization and /notifications"""

    @pytest.mark.asyncio
    async def test_mine_empty(self, engine):
        update = make_update()
        await mine_command(update, make_context(engine))
        assert "No Assignments" in reply_of(update)

    @pytest.mark.asyncio
    async def test_mine_lists_assignments(self, engine):
        await engine.request_resource("L1", "111")
        update = make_update()

        await mine_command(update, make_context(engine))

        assert "L1 (assigned 2026-10-16)" in reply_of(update)
        assert "1 assignment(s)" in reply_of(update)

    @pytest.mark.asyncio
    async def test_resources(self, engine):
        await engine.request_resource("E1", "111")
        update = make_update()

        await resources_command(update, make_context(engine))

        text = reply_of(update)
        assert "<b>E1</b> Projector: 1/2 available" in text
        assert "location: Lot A" in text

    @pytest.mark.asyncio
    async def test_resources_type_filter(self, engine):
        update = make_update()
        await resources_command(update, make_context(engine, ["LICENSE"]))

        text = reply_of(update)
        assert "L1" in text
        assert "P1" not in text

    @pytest.mark.asyncio
    async def test_resources_unknown_type(self, engine):
        update = make_update()
        await resources_command(update, make_context(engine, ["boats"]))
        assert "Unknown resource type" in reply_of(update)

    @pytest.mark.asyncio
    async def test_utilization_today(self, engine):
        await engine.request_resource("P1", "111")
        await engine.check_return_reminders()
        update = make_update()

        await utilization_command(update, make_context(engine, ["p1"]))

        assert reply_of(update) == "📊 Utilization\n\nP1 2026-10-16: 100% (1/1)"

    @pytest.mark.asyncio
    async def test_utilization_range(self, engine, clock):
        await engine.check_return_reminders()
        clock.advance(days=1)
        await engine.check_return_reminders()
        update = make_update()

        await utilization_command(update, make_context(engine, ["E1", "2026-10-16", "2026-10-17"]))

        lines = reply_of(update).splitlines()[2:]
        assert lines == ["E1 2026-10-16: 0% (0/2)", "E1 2026-10-17: 0% (0/2)"]

    @pytest.mark.asyncio
    async def test_utilization_open_range_ends_today(self, engine, clock):
        """Test a single date means from that day through today"""
        await engine.check_return_reminders()
        clock.advance(days=1)
        await engine.check_return_reminders()
        update = make_update()

        await utilization_command(update, make_context(engine, ["E1", "2026-10-16"]))

        lines = reply_of(update).splitlines()[2:]
        assert lines == ["E1 2026-10-16: 0% (0/2)", "E1 2026-10-17: 0% (0/2)"]

    @pytest.mark.asyncio
    async def test_utilization_bad_args(self, engine):
        update = make_update()
        await utilization_command(update, make_context(engine, ["P1", "x", "y"]))
        assert "Usage" in reply_of(update)

    @pytest.mark.asyncio
    async def test_notifications_shown_then_cleared(self, engine, clock):
        await engine.request_resource("P1", "111", clock() + timedelta(hours=2))
        await engine.check_return_reminders()
        update = make_update()

        await notifications_command(update, make_context(engine))

        assert "Reminder: Please return Parking Spot 1 by 2026-10-16." in reply_of(update)
        assert await engine.list_notifications("111") == []

    @pytest.mark.asyncio
    async def test_notification_arriving_during_reply_is_kept(self, engine, clock):
        """Test only the notifications shown are cleared"""
        await engine.request_resource("P1", "111", clock() + timedelta(hours=2))
        await engine.request_resource("P2", "222")
        await engine.request_resource("P2", "111")
        await engine.check_return_reminders()
        update = make_update()

        async def reply_while_p2_returned(*args, **kwargs):
            await engine.return_resource("P2", "222")

        update.message.reply_text = AsyncMock(side_effect=reply_while_p2_returned)

        await notifications_command(update, make_context(engine))

        assert "Reminder: Please return Parking Spot 1" in reply_of(update)
        assert "Parking Spot 2" not in reply_of(update)
        assert await engine.list_notifications("111") == ["Parking Spot 2 is now assigned to you."]

    @pytest.mark.asyncio
    async def test_no_notifications(self, engine):
        update = make_update()
        await notifications_command(update, make_context(engine))
        assert reply_of(update) == "🔔 No new notifications."


class TestAssistantCommands:
    """Tests for /recommend and free-text messages"""

    @pytest.mark.asyncio
    async def test_recommend(self, engine):
        chat = Mock()
        chat.recommendations = AsyncMock(return_value=["Request P2", "Return L1"])
        update = make_update()

        await recommend_command(update, make_context(engine, chat=chat))

        assert reply_of(update) == "💡 Recommendations\n\n• Request P2\n• Return L1"
        chat.recommendations.assert_awaited_once_with("111")

    @pytest.mark.asyncio
    async def test_recommend_unavailable(self, engine):
        update = make_update()
        await recommend_command(update, make_context(engine))
        assert reply_of(update) == "💡 No recommendations right now."

    @pytest.mark.asyncio
    async def test_text_message_routes_to_chat(self, engine):
        update = make_update(text="request E1")
        await text_message_handler(update, make_context(engine))
        assert reply_of(update) == "Assigned Projector to you."

    @pytest.mark.asyncio
    async def test_text_message_truncated(self, engine):
        chat = Mock()
        chat.handle_chat = AsyncMock(return_value="x" * (MAX_MESSAGE_LENGTH + 10))
        update = make_update(text="hello")

        await text_message_handler(update, make_context(engine, chat=chat))

        assert len(reply_of(update)) == MAX_MESSAGE_LENGTH

    @pytest.mark.asyncio
    async def test_empty_message_ignored(self, engine):
        update = make_update(text="")
        await text_message_handler(update, make_context(engine))
        update.message.reply_text.assert_not_called()


class TestAdminCommands:
    """Tests for /reseed and /stats"""

    @pytest.mark.asyncio
    async def test_reseed_requires_admin(self, engine):
        await engine.reseed([Resource(id="X1", type=ResourceType.EQUIPMENT, name="Drill", quantity=1)])
        update = make_update(user_id=111)

        with patch("src.commands.reseed.get_config", return_value=Mock(admin_telegram_id=42)):
            await reseed_command(update, make_context(engine))

        assert "Only the administrator" in reply_of(update)
        assert [r.id for r in await engine.list_resources()] == ["X1"]

    @pytest.mark.asyncio
    async def test_reseed_as_admin(self, engine):
        await engine.reseed([Resource(id="X1", type=ResourceType.EQUIPMENT, name="Drill", quantity=1)])
        update = make_update(user_id=42)

        with patch("src.commands.reseed.get_config", return_value=Mock(admin_telegram_id=42)):
            await reseed_command(update, make_context(engine))

        assert "reseeded with 4" in reply_of(update)
        assert [r.id for r in await engine.list_resources()] == ["P1", "P2", "L1", "E1"]

    @pytest.mark.asyncio
    async def test_stats(self, engine):
        await engine.request_resource("L1", "111")
        update = make_update()

        await stats_command(update, make_context(engine))

        text = reply_of(update)
        assert "Resources: 4" in text
        assert "Free units: 8/9" in text


class TestReminderScheduler:
    """Tests for the reminder sweep scheduling helpers"""

    def test_seconds_until_later_today(self):
        now = datetime(2026, 10, 16, 7, 30, tzinfo=timezone.utc)
        assert seconds_until_next_run(now, 9) == 90 * 60

    def test_seconds_until_tomorrow(self):
        now = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)
        assert seconds_until_next_run(now, 9) == 24 * 3600

    def test_early_wakeup_skips_day_already_swept(self):
        """Test a wake-up just before the hour does not sweep the same day twice"""
        now = datetime(2026, 10, 16, 8, 59, 59, 900000, tzinfo=timezone.utc)
        assert seconds_until_next_run(now, 9) == pytest.approx(0.1)

        delay = seconds_until_next_run(now, 9, last_run_date=now.date())
        assert delay == pytest.approx(24 * 3600 + 0.1)

    @pytest.mark.asyncio
    async def test_loop_passes_last_sweep_date(self):
        """Test the loop feeds the date of its last sweep into scheduling"""
        delays = Mock(return_value=0)
        sweep = AsyncMock(return_value=0)
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        with patch.object(reminder_scheduler, "seconds_until_next_run", delays), \
                patch.object(reminder_scheduler, "run_sweep", sweep), \
                patch.object(reminder_scheduler.asyncio, "sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await reminder_scheduler.reminder_loop(Mock(), Mock(), hour=9)

        sweep.assert_awaited_once()
        first, second = delays.call_args_list
        assert first[0][2] is None
        assert second[0][2] == datetime.now(timezone.utc).date()

    @pytest.mark.asyncio
    async def test_run_sweep_updates_stats(self, engine, clock, monkeypatch):
        monkeypatch.setattr(
            reminder_scheduler,
            "stats",
            {
                "total_sweeps": 0,
                "failed_sweeps": 0,
                "reminders_sent": 0,
                "last_sweep_time": None,
                "bot_start_time": None,
            },
        )
        await engine.request_resource("P1", "111", clock() + timedelta(hours=2))

        reminders = await run_sweep(engine)

        assert reminders == 1
        assert reminder_scheduler.stats["total_sweeps"] == 1
        assert reminder_scheduler.stats["reminders_sent"] == 1
        assert reminder_scheduler.stats["last_sweep_time"] is not None

    @pytest.mark.asyncio
    async def test_health_alert_sent_to_admin(self):
        application = Mock()
        application.bot.send_message = AsyncMock()

        with patch(
            "src.services.reminder_scheduler.get_config",
            return_value=Mock(admin_telegram_id=42),
        ):
            await reminder_scheduler.send_health_alert(application, "sweep failing")

        kwargs = application.bot.send_message.call_args[1]
        assert kwargs["chat_id"] == 42
        assert "sweep failing" in kwargs["text"]

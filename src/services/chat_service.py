"""
Chat entry point: structured intents first, free-text assistant otherwise.
Every exchange is appended to the user's bounded conversation history.
"""

import asyncio
import logging
from typing import Optional

from src.engine import ArbitrationEngine
from src.exceptions import GenerationUnavailable
from src.formatting import format_assignments, format_resources, format_utilization
from src.services.assistant import AssistantClient, COMMANDS_HELP
from src.services.intents import ChatIntent, IntentKind, match_intent

logger = logging.getLogger(__name__)

EMPTY_REPLY_FALLBACK = (
    "I couldn't generate a response. Try: request <id>, return <id>, "
    "list resources, or ask for recommendations."
)
ERROR_REPLY_FALLBACK = (
    "Something went wrong with the assistant. You can still say: "
    "request <id>, return <id>, list resources, or utilization."
)
NOT_CONFIGURED_FALLBACK = f"I only understand structured commands right now: {COMMANDS_HELP}."


class ChatService:
    """Turns chat messages into engine operations and replies"""

    def __init__(self, engine: ArbitrationEngine, assistant: Optional[AssistantClient] = None):
        self.engine = engine
        self.assistant = assistant

    async def handle_chat(self, user_id: str, message: str) -> str:
        text = message.strip()
        intent = match_intent(text)

        if intent is not None:
            logger.info(f"User {user_id} intent: {intent.kind.value} {intent.resource_id or ''}")
            reply = await self._run_intent(user_id, intent)
        else:
            reply = await self._freeform_reply(user_id, text)

        await self.engine.record_conversation(user_id, text, reply)
        return reply

    async def _run_intent(self, user_id: str, intent: ChatIntent) -> str:
        if intent.kind == IntentKind.REQUEST:
            result = await self.engine.request_resource(intent.resource_id, user_id)
            return result.message

        if intent.kind == IntentKind.RETURN:
            result = await self.engine.return_resource(intent.resource_id, user_id)
            return result.message

        if intent.kind == IntentKind.MY_ASSIGNMENTS:
            return format_assignments(await self.engine.list_my_assignments(user_id))

        if intent.kind == IntentKind.LIST_RESOURCES:
            return format_resources(await self.engine.list_resources())

        if intent.kind == IntentKind.UTILIZATION:
            return format_utilization(await self.engine.get_utilization())

        if intent.kind == IntentKind.RECOMMEND:
            suggestions = await self.recommendations(user_id)
            if not suggestions:
                return "No recommendations right now."
            return "\n".join(f"• {s}" for s in suggestions)

        if intent.kind == IntentKind.CLEAR_NOTIFICATIONS:
            await self.engine.clear_notifications(user_id)
            return "Notifications cleared."

        raise ValueError(f"Unhandled intent: {intent.kind}")

    async def recommendations(self, user_id: str) -> list:
        if self.assistant is None:
            return []
        summary = await self.engine.build_state_summary(user_id)
        return await asyncio.to_thread(self.assistant.recommend, summary)

    async def _freeform_reply(self, user_id: str, text: str) -> str:
        """Ask the assistant; degrade to a static message on any failure"""
        if self.assistant is None or not self.assistant.enabled:
            return NOT_CONFIGURED_FALLBACK

        summary = await self.engine.build_state_summary(user_id)
        directory = await self.engine.resource_directory()
        history = await self.engine.conversation_for(user_id)

        try:
            return await asyncio.to_thread(
                self.assistant.resolve, user_id, text, summary, directory, history
            )
        except GenerationUnavailable as e:
            logger.error(f"Assistant reply failed for user {user_id}: {e}")
            if e.empty:
                return EMPTY_REPLY_FALLBACK
            return ERROR_REPLY_FALLBACK

"""
AI-powered assistant for free-text messages that match no structured command.
Talks to an OpenAI-compatible chat completions endpoint.
"""
import json
import logging
import re
from typing import Dict, List, Optional, Sequence

import requests

from src.config import PoolConfig
from src.exceptions import GenerationUnavailable
from src.models import ConversationMessage

logger = logging.getLogger(__name__)

COMMANDS_HELP = (
    "request <id>, return <id>, list resources, "
    'list my assignments (or "what do I have"), utilization'
)

RECOMMENDATIONS_PROMPT = (
    "You are the resource allocation assistant. Based on current state, suggest 1-5 short "
    'recommendations (e.g. "Consider requesting P2", "You have L1; return by Friday"). '
    "Reply with only the suggestions, one per line, no numbering or extra text."
)

_BULLET = re.compile(r"^(?:\d+[.)]|[-*\u2022])\s*")


def build_system_prompt(resource_directory: str) -> str:
    """System prompt listing the pool's resources and the chat commands"""
    return f"""You are the resource allocation assistant. Users can request or return resources by id, list resources, list their assignments, or ask for recommendations.
Available resource IDs and names: {resource_directory or "None yet."}
Commands: {COMMANDS_HELP}.
When relevant, suggest available resources or next actions (e.g. return by due date, or request something they don't have). Keep replies concise."""


def parse_recommendations(text: str) -> List[str]:
    """Split a reply into suggestion lines without bullets or numbering"""
    lines = []
    for line in re.split(r"\n+", text.strip()):
        cleaned = _BULLET.sub("", line.strip()).strip()
        if cleaned:
            lines.append(cleaned)
    return lines


class AssistantClient:
    """Freeform-intent resolver backed by a chat completions API"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        api_url: str = "https://api.openai.com/v1/chat/completions",
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: PoolConfig) -> "AssistantClient":
        return cls(
            api_key=config.openai_api_key if config.has_openai else None,
            model=config.openai_model,
            api_url=config.openai_api_url,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _complete(self, messages: List[Dict[str, str]], max_tokens: int) -> str:
        """
        Run one chat completion.

        Raises:
            GenerationUnavailable: if the API is not configured, fails, or
                returns no usable content
        """
        if not self.enabled:
            raise GenerationUnavailable("OPENAI_API_KEY not set")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": messages,
            "max_completion_tokens": max_tokens,
        }
        logger.debug(f"OpenAI request payload: {json.dumps(payload, ensure_ascii=False)}")

        try:
            response = requests.post(
                self.api_url, headers=headers, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
            message = result["choices"][0]["message"]
            refusal = message.get("refusal")
            content = (message.get("content") or "").strip()
        except requests.exceptions.RequestException as e:
            logger.error(f"AI request failed: {e}")
            raise GenerationUnavailable(str(e)) from e
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Unexpected AI response format: {e}")
            raise GenerationUnavailable("malformed response") from e

        if refusal:
            logger.warning(f"Model refused to respond: {refusal}")
            raise GenerationUnavailable("model refused")

        if not content:
            raise GenerationUnavailable("empty response", empty=True)
        return content

    def resolve(
        self,
        user_id: str,
        text: str,
        context_summary: str,
        resource_directory: str = "",
        history: Sequence[ConversationMessage] = (),
    ) -> str:
        """Reply to a free-text message using the user's state as context"""
        messages = [
            {
                "role": "system",
                "content": build_system_prompt(resource_directory) + "\n\n" + context_summary,
            }
        ]
        messages.extend({"role": m.role, "content": m.content} for m in history)
        messages.append({"role": "user", "content": text})

        logger.info(f"Sending AI request for user {user_id}: {text[:50]}...")
        return self._complete(messages, max_tokens=512)

    def recommend(self, context_summary: str) -> List[str]:
        """1-5 short suggestions for the user, or [] if unavailable"""
        messages = [
            {"role": "system", "content": RECOMMENDATIONS_PROMPT},
            {"role": "user", "content": context_summary},
        ]
        try:
            text = self._complete(messages, max_tokens=256)
        except GenerationUnavailable as e:
            logger.warning(f"Recommendations unavailable: {e}")
            return []
        return parse_recommendations(text)[:5]

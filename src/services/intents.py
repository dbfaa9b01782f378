"""
Structured intent recognition for chat messages.
Matchers are tried in order; the first hit wins.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern


class IntentKind(str, Enum):
    REQUEST = "request"
    RETURN = "return"
    MY_ASSIGNMENTS = "my_assignments"
    LIST_RESOURCES = "list_resources"
    UTILIZATION = "utilization"
    RECOMMEND = "recommend"
    CLEAR_NOTIFICATIONS = "clear_notifications"


@dataclass
class ChatIntent:
    kind: IntentKind
    resource_id: Optional[str] = None


@dataclass
class IntentMatcher:
    kind: IntentKind
    pattern: Pattern
    takes_resource: bool = False

    def match(self, text: str) -> Optional[ChatIntent]:
        found = self.pattern.search(text.lower())
        if not found:
            return None
        if self.takes_resource:
            return ChatIntent(self.kind, found.group(1).upper())
        return ChatIntent(self.kind)


INTENT_MATCHERS: List[IntentMatcher] = [
    IntentMatcher(IntentKind.REQUEST, re.compile(r"request\s+(?:resource\s+)?(\S+)"), True),
    IntentMatcher(IntentKind.RETURN, re.compile(r"return\s+(?:resource\s+)?(\S+)"), True),
    IntentMatcher(
        IntentKind.MY_ASSIGNMENTS,
        re.compile(r"\b(my\s+)?(assignments|what\s+do\s+i\s+have|list\s+mine)\b"),
    ),
    IntentMatcher(IntentKind.LIST_RESOURCES, re.compile(r"\b(list\s+)?resources\b")),
    IntentMatcher(IntentKind.UTILIZATION, re.compile(r"\butilization\b")),
    IntentMatcher(IntentKind.RECOMMEND, re.compile(r"\brecommend(ations?)?\b")),
    IntentMatcher(IntentKind.CLEAR_NOTIFICATIONS, re.compile(r"\bclear\s+notifications\b")),
]


def match_intent(text: str) -> Optional[ChatIntent]:
    """Resolve a message to a structured intent, or None for free text"""
    for matcher in INTENT_MATCHERS:
        intent = matcher.match(text.strip())
        if intent is not None:
            return intent
    return None

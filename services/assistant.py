"""
Chat Session - In-memory conversation with the offline responder
================================================================

This module owns the message list of one side-panel conversation. The
responder itself is stateless; the session is what accumulates turns.
Nothing is persisted: closing the session discards the conversation.
"""

from typing import Optional, Tuple

from core.logging import get_logger
from rules.engine import Message, Role, RulesEngine

logger = get_logger("services.assistant")


DEFAULT_GREETING = "Lifelong Catch & Correct (offline) is active."


class ChatSession:
    """
    One conversation with the offline responder.

    Example:
        session = ChatSession(RulesEngine())
        reply = session.send("show me the checklist")
        print(reply.content)
    """

    def __init__(self, engine: Optional[RulesEngine] = None, greeting: str = DEFAULT_GREETING):
        """
        Initialize chat session.

        Args:
            engine: Rules engine used for replies (built-in table if None)
            greeting: Assistant message the conversation opens with;
                empty for none
        """
        self.engine = engine or RulesEngine()
        self.greeting = greeting
        self._messages: Tuple[Message, ...] = ()
        self.reset()

    @property
    def messages(self) -> Tuple[Message, ...]:
        """All messages so far, oldest first."""
        return self._messages

    def reset(self) -> None:
        """Start the conversation over."""
        if self.greeting:
            self._messages = (Message(role=Role.ASSISTANT, content=self.greeting),)
        else:
            self._messages = ()

    def send(self, text: Optional[str]) -> Optional[Message]:
        """
        Add a user turn and the assistant's reply.

        Blank input is ignored.

        Args:
            text: Raw user input

        Returns:
            The assistant reply, or None when the input was blank
        """
        content = (text or "").strip()
        if not content:
            return None

        user_message = Message(role=Role.USER, content=content)
        history = self._messages + (user_message,)
        reply = self.engine.respond(history, content)
        self._messages = history + (reply,)

        logger.debug(f"Chat turn {len(self._messages) // 2}: {len(content)} chars in")
        return reply

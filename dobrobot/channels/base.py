"""Base channel interface for the messenger the bot talks through."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Literal


class EditResult(str, Enum):
    """Outcome of an edit. NOT_FOUND is expected (message or dialog gone), not an error."""
    OK = "ok"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class InlineButton:
    """Inline keyboard button: opens a URL (link) or sends a payload back to the bot (callback)."""
    kind: Literal["link", "callback"]
    text: str
    url: str | None = None
    payload: str | None = None

    @classmethod
    def link(cls, text: str, url: str) -> "InlineButton":
        return cls(kind="link", text=text, url=url)

    @classmethod
    def callback(cls, text: str, payload: str) -> "InlineButton":
        return cls(kind="callback", text=text, payload=payload)


# Linhas de botões, de cima para baixo
Keyboard = list[list[InlineButton]]


class MessagingChannel(ABC):
    """
    Abstract base class for the messaging collaborator.

    Implementations raise backend.errors.MessagingError for transport/API
    failures. A message that no longer exists is reported by edit_message
    as EditResult.NOT_FOUND instead.
    """

    name: str = "base"

    @abstractmethod
    async def send_message(self, user_id: int, text: str, buttons: Keyboard | None = None) -> str:
        """
        Send a text message to a user.

        Args:
            user_id: Messenger user id.
            text: Message body.
            buttons: Optional inline keyboard attached to the message.

        Returns:
            Opaque reference of the sent message (used later for edits).
        """
        pass

    @abstractmethod
    async def edit_message(self, message_ref: str, text: str, buttons: Keyboard | None = None) -> EditResult:
        """Replace the text (and keyboard, when given) of a previously sent message."""
        pass

    async def answer_callback(self, callback_id: str, notification: str | None = None) -> None:
        """Acknowledge an inline button press. Channels without callbacks ignore it."""
        return None

    async def close(self) -> None:
        """Release network resources."""
        return None

"""Messaging channels (MAX messenger)."""

from dobrobot.channels.base import EditResult, InlineButton, Keyboard, MessagingChannel
from dobrobot.channels.max import MaxChannel

__all__ = ["EditResult", "InlineButton", "Keyboard", "MessagingChannel", "MaxChannel"]

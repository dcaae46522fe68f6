"""Dobro bot: view tracking and engagement notifications for the Dobro mini app."""

__version__ = "0.1.0"
__logo__ = "💚"
__title__ = "Dobro"

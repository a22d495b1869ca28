"""Moderation server: ban and mute state over HTTP."""

__version__ = "1.0.0"

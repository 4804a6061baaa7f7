"""Webhook server for hub deliveries and live status reads."""

from youtube_pubsub.infrastructure.web.app import create_app

__all__ = [
    "create_app",
]

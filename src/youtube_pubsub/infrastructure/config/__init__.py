"""Configuration providers and models."""

from youtube_pubsub.infrastructure.config.models import AppConfig, PushSettings
from youtube_pubsub.infrastructure.config.yaml_provider import YamlConfigurationProvider

__all__ = [
    "AppConfig",
    "PushSettings",
    "YamlConfigurationProvider",
]

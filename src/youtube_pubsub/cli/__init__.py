"""Command line interface for YouTube PubSub."""

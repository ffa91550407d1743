"""Test fixtures for chansync.

This package provides reusable factories and pytest fixtures:
- entities: Teams, channels, users, posts and reactions
- events: Raw inbound event payloads as the host would deliver them
- engine: Engines on a fixed logical clock with a buffered outbound sink
"""

"""
Utility functions and helpers for Vouchcord.

- **logger.py**: Centralized logging configuration with colored console output,
  a shared per-session log file, and suppression of noisy library loggers.
  Uses prompt_toolkit for console output.

- **message_adapter.py**: Converts py-cord ``discord.Message`` objects into the
  ``InboundMessage`` snapshots consumed by the validation pipeline.

- **discord_utils.py**: Small Discord helpers for ignoring authors, permission
  checks, and sending or deleting transient feedback messages.
"""

"""
Configuration management for Vouchcord.

- **app_configuration.py**: YAML configuration loader for global settings
  (mention allow-list, image verification, channel cache TTL, default text
  command prefix, feedback message lifetime, database path). The file path can
  be overridden with ``VOUCHCORD_CONFIG``, which is also read from ``.env``.
  Falls back to defaults on missing or malformed files.
"""

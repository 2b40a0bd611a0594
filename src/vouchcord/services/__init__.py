"""
Services coordinating the database and the in-process caches.

- **channel_settings_service.py**: enable/disable auto-vouch and auto-proof
  monitoring for a channel.
- **prefix_service.py**: per-guild text command prefix lookup and changes.
- **sticky_message_service.py**: per-channel sticky messages kept at the
  bottom of the channel.
- **proof_collection_service.py**: bulk import of proof images from a
  channel's history.
"""

"""
Value types shared across Vouchcord.

- **discord_datatypes.py**: snowflake wrappers (UserID, GuildID, ChannelID,
  MessageID) that compare equal across int and str representations.
- **image_datatypes.py**: ImageURL, a parsed URL exposing host class,
  attachment ID and query presence for canonicalization.
- **message_datatypes.py**: InboundMessage and its attachment, embed and
  sticker parts, plus the VouchRecord, ProofRecord and StickyRecord rows.
"""

"""
Vouchcord - Vouch and proof collection bot for Discord trading communities

Vouchcord watches configured channels and keeps two kinds of records:

- **Vouches**: testimonial messages attesting to a trade. A message counts
  as a vouch when it contains an endorsement keyword, mentions the user being
  vouched for, and names something of value. Invalid messages in an
  auto-vouch channel are removed with a short warning.
- **Proofs**: image evidence of a trade. Every image in a message (uploads,
  proxied copies, embeds from forwarded messages, pasted CDN links) is
  collapsed to one canonical URL per physical image before it is stored.

Core Components:

- **Validation**: pure vouch rules and image URL extraction, with optional
  network verification of image URLs
- **Persistence**: aiosqlite repositories for vouches, proofs, monitored
  channels and per-guild text command prefixes
- **Listener**: py-cord cog reacting to message create, edit and delete events

Usage:
    from vouchcord.bot.cogs import message_listener
    message_listener.setup(bot)
"""

"""Discord-facing layer of Vouchcord."""

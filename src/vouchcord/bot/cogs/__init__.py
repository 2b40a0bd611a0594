"""
Cogs package for Vouchcord.
Each module defines a cog class and a setup function to register it with the bot.
"""

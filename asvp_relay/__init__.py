"""
ASVP Relay

Downloads enforcement-proceeding documents from the ASVP registry, stores
them locally and relays them to a Telegram chat.
"""

__version__ = "0.1.0"

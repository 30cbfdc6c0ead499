"""Stream Deck price ticker plugin."""

__version__ = "0.1.0"

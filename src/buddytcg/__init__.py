"""BuddyTCG: rules engine, AI opponents and tournament tooling for the Buddies card game."""

__version__ = "0.1.0"

"""Lyric Vault: store lyric fragments and find the ones that fit a new line."""

__version__ = "1.0.0"

"""Locale configuration and resource bundle formats."""

"""Synchronize per-locale translation files into Android and Xcode projects."""

__version__ = "0.1.0"

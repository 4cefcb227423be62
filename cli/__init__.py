"""Command-line interface for VideoSpeak."""

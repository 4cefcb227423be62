"""CLI entry point for VideoSpeak."""

from cli.commands.main import cli

if __name__ == "__main__":
    cli()

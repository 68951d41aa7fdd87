"""Allow ``python -m downloads_organizer``."""

from .cli.main import cli

if __name__ == "__main__":
    cli()

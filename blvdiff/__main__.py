"""Entry point for ``python -m blvdiff``."""

from blvdiff.cli.commands import app

if __name__ == "__main__":
    app()

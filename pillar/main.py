"""
Entry point for the `pillar` command.
"""

from pillar.config.setup import setup

setup()

from pillar.cli import app  # noqa: E402


def main():
    app()


if __name__ == "__main__":
    main()

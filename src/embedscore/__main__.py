"""Entry point for running embedscore as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the embedscore CLI application."""
    app()


if __name__ == "__main__":
    main()

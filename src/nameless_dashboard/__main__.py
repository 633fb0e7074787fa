"""Allow ``python -m nameless_dashboard``."""

from nameless_dashboard.cli import app

if __name__ == "__main__":
    app()

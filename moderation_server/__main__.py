"""Run the moderation server: ``python -m moderation_server``."""

from moderation_server.main import run

if __name__ == "__main__":
    run()

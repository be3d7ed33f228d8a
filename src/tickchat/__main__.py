"""tickchat CLI bootstrap."""

from tickchat.cli import app

if __name__ == "__main__":
    app()

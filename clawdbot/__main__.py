"""Allow ``python -m clawdbot``."""

from clawdbot.cli import run

if __name__ == "__main__":
    run()

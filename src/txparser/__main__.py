"""Run the service with ``python -m txparser``."""

from txparser.main import run

if __name__ == "__main__":
    run()

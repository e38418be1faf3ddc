"""
Entry point for running the watch e2e harness as a module.

Usage:
    python -m watch_e2e run
    python -m watch_e2e list
    python -m watch_e2e validate --scenarios scenarios.yaml
"""

from .api.cli import main

if __name__ == "__main__":
    main()

"""
Entry point for ``python -m clinicschedule``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()

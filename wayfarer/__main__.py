# wayfarer/__main__.py
"""
Main entry point so the CLI can be started with `python -m wayfarer`.
"""
from wayfarer.cli import app

if __name__ == "__main__":
    app()

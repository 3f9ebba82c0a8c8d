"""Automation drivers: the interface the agent uses to act on a browser page."""

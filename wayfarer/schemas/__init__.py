"""Pydantic schemas shared across the Wayfarer package."""

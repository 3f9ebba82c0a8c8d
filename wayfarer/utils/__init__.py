"""
Shared utilities: configuration, logging, log redaction, backend profile
loading and per-session locking.
"""

"""Conversation loop, tool execution and prompt construction."""

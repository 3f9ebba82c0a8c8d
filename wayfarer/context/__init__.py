"""Page-context extraction, history and summaries."""

"""server-logger — grouped, capped JSON-lines log storage."""

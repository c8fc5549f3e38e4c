"""One-off data migrations against the document store."""

"""Report rendering — JSON and markdown."""

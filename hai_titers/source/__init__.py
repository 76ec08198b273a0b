"""Source document access: HTTP fetch and table location."""

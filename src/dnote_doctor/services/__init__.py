"""Services that inspect and repair the dnote store."""

"""Per-category diagram builders and the dispatch entry point."""

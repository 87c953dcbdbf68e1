"""sitemapper: URL discovery, deduplication and validation engine."""

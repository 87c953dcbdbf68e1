from __future__ import annotations

from dataclasses import dataclass

from sitemapper.services.fetcher import Fetcher


@dataclass(frozen=True)
class FetcherFactory:
    simulated_fetcher: Fetcher
    http_fetcher: Fetcher

    def get(self, fetch_mode: str) -> Fetcher:
        if fetch_mode is None or (isinstance(fetch_mode, str) and fetch_mode.strip() == ""):
            raise ValueError("fetch_mode is required")
        mode = fetch_mode.strip().lower()
        if mode == "simulated":
            return self.simulated_fetcher
        if mode == "http":
            return self.http_fetcher
        raise ValueError(f"Unknown fetch_mode: {fetch_mode!r}")

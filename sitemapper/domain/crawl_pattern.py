from typing import Any, Mapping, NamedTuple


class CrawlPattern(NamedTuple):
    """Include/exclude path pattern produced by seed analysis."""
    pattern: str
    include: bool = True

    def to_dict(self) -> dict:
        return {"pattern": self.pattern, "include": self.include}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CrawlPattern":
        return cls(pattern=str(data["pattern"]), include=bool(data.get("include", True)))

from typing import Optional

from bs4 import BeautifulSoup


class TitleExtractor:
    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def extract(self, html: Optional[str]) -> Optional[str]:
        """Return the page `<title>`, falling back to `og:title`, or None."""
        if not html:
            return None
        soup = BeautifulSoup(html, self.parser)
        if soup.title is not None:
            title = soup.title.get_text(strip=True)
            if title:
                return title
        meta = soup.find("meta", attrs={"property": "og:title"})
        if meta is not None:
            content = (meta.get("content") or "").strip()
            if content:
                return content
        return None

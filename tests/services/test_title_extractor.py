from sitemapper.services.title_extractor import TitleExtractor


def test_extracts_title_tag():
    assert TitleExtractor().extract("<html><head><title> Launch News </title></head></html>") == "Launch News"


def test_falls_back_to_og_title():
    html = '<html><head><title></title><meta property="og:title" content="OG Title"></head></html>'
    assert TitleExtractor().extract(html) == "OG Title"


def test_missing_title_returns_none():
    assert TitleExtractor().extract("<p>no title</p>") is None
    assert TitleExtractor().extract("") is None

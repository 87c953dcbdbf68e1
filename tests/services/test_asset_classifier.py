import pytest

from sitemapper.services.asset_classifier import (
    AssetClassifier,
    detect_asset_type,
    detect_site_page_type,
    document_type,
    extract_url_name,
    image_format,
)


@pytest.mark.parametrize("url,content_type,expected", [
    ("https://example.com/a", "text/html; charset=utf-8", "webpage"),
    ("https://example.com/a", "image/png", "image"),
    ("https://example.com/a", "application/pdf", "document"),
    ("https://example.com/a.mp4", None, "video"),
    ("https://example.com/data.csv", None, "data"),
    ("https://example.com/about", None, "webpage"),
    ("https://example.com/file.bin", None, "unknown"),
])
def test_detect_asset_type(url, content_type, expected):
    assert detect_asset_type(url, content_type) == expected


@pytest.mark.parametrize("url,expected", [
    ("https://spacenews.com/", "homepage"),
    ("https://spacenews.com/category/launch/", "category-page"),
    ("https://spacenews.com/author/jane-doe/", "author-page"),
    ("https://spacenews.com/tag/mars/page/2/", "tag-page"),
    ("https://spacenews.com/2024/05/", "month-archive"),
    ("https://spacenews.com/2024/05/01/", "date-archive"),
    ("https://spacenews.com/2024/", "year-archive"),
    ("https://spacenews.com/military/launch-contract/", "military-space-section"),
    ("https://spacenews.com/op-ed/why-mars/", "commentary"),
    ("https://spacenews.com/moon-lander-update/", "article"),
    ("https://spacenews.com/a/b/c/", "webpage"),
])
def test_detect_site_page_type(url, expected):
    assert detect_site_page_type(url) == expected


def test_classifier_applies_taxonomy_only_to_configured_domains():
    classifier = AssetClassifier(taxonomy_domains=("spacenews.com",))
    assert classifier.classify("https://spacenews.com/category/launch/", "text/html") == "category-page"
    assert classifier.classify("https://www.spacenews.com/moon-lander/", "text/html") == "article"
    assert classifier.classify("https://spacenews.com/logo.png", "image/png") == "image"
    assert classifier.classify("https://example.com/category/launch/", "text/html") == "webpage"


def test_site_metadata():
    classifier = AssetClassifier(taxonomy_domains=("spacenews.com",))
    assert classifier.site_metadata("https://spacenews.com/x/", "article") == {
        "source": "spacenews.com",
        "contentType": "article",
        "content_category": "News Article",
    }
    assert classifier.site_metadata("https://example.com/x/", "article") == {}


def test_extract_url_name():
    assert extract_url_name("https://example.com/") == "example.com"
    assert extract_url_name("https://example.com/docs/annual_report-2023.pdf") == "Annual Report 2023"
    assert extract_url_name("") == "Unnamed URL"


def test_document_and_image_helpers():
    assert document_type("https://example.com/a.DOCX") == "Word"
    assert document_type("https://example.com/a.txt") is None
    assert image_format("image/jpeg") == "JPEG"
    assert image_format("image/webp") is None

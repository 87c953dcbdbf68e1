import logging
from http import HTTPStatus
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

from sitemapper.domain.http_response import HttpResponse
from sitemapper.domain.validation import ValidationResult, ValidationStatus
from sitemapper.exceptions import HttpFetchError
from sitemapper.services.asset_classifier import document_type, extract_url_name, image_format, is_page_like

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https")


def status_for_code(code: int) -> ValidationStatus:
    if 200 <= code < 300:
        return ValidationStatus.VALID
    if 300 <= code < 400:
        return ValidationStatus.WARNING
    return ValidationStatus.ERROR


def _reason(response: HttpResponse) -> str:
    if response.reason:
        return response.reason
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return ""


class UrlValidator:
    """Checks one URL with a HEAD probe and optionally enriches the result."""

    def __init__(self, *, http_service, classifier, title_extractor):
        self.http_service = http_service
        self.classifier = classifier
        self.title_extractor = title_extractor

    def validate(self, url: Optional[str], *, enrich: bool = False) -> ValidationResult:
        if url is None or not url.strip():
            return ValidationResult(url or "", ValidationStatus.ERROR, "URL cannot be empty", url_name="Unnamed URL")
        url = url.strip()
        name = extract_url_name(url)
        error = self._input_error(url)
        if error:
            return ValidationResult(url, ValidationStatus.ERROR, error, url_name=name)

        try:
            response = self.http_service.head(url)
        except HttpFetchError as e:
            logger.debug("Probe failed for %s: %s", url, e)
            return ValidationResult(url, ValidationStatus.ERROR, f"Connection error: {e.original}", url_name=name)

        status = status_for_code(response.status_code)
        message = f"HTTP {response.status_code} {_reason(response)}".strip()
        asset_type = self.classifier.classify(url, response.content_type)
        metadata: Dict[str, str] = {}
        if enrich and status is not ValidationStatus.ERROR:
            name, metadata = self._enrich(url, response, asset_type, name)
        return ValidationResult(
            url=url,
            status=status,
            message=message,
            asset_type=asset_type,
            url_name=name,
            status_code=response.status_code,
            content_type=response.content_type,
            metadata=metadata,
        )

    @staticmethod
    def _input_error(url: str) -> Optional[str]:
        try:
            parts = urlsplit(url)
        except ValueError as e:
            return f"Malformed URL: {e}"
        if not parts.scheme:
            return "Missing URL scheme"
        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            return "Only HTTP and HTTPS protocols are supported"
        if not parts.netloc:
            return "Missing host"
        return None

    def _enrich(self, url: str, response: HttpResponse, asset_type: str, name: str) -> Tuple[str, Dict[str, str]]:
        metadata: Dict[str, str] = {}
        if is_page_like(asset_type):
            try:
                page = self.http_service.fetch(url)
                title = self.title_extractor.extract(page.text)
                if title:
                    name = title
            except HttpFetchError as e:
                logger.debug("Title fetch failed for %s: %s", url, e)
                metadata["validation_error"] = str(e.original)
        elif asset_type == "image":
            if response.content_length:
                metadata["size"] = str(response.content_length)
            fmt = image_format(response.content_type)
            if fmt:
                metadata["format"] = fmt
                name = f"{name} [{fmt}]"
        elif asset_type == "document":
            doc_type = document_type(url)
            if doc_type:
                metadata["docType"] = doc_type
                name = f"{name} [{doc_type}]"
        metadata.update(self.classifier.site_metadata(url, asset_type))
        return name, metadata

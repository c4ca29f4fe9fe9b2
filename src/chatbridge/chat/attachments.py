"""Attachment fetching and classification for provider-bound messages."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Literal, Sequence
from urllib.parse import unquote_to_bytes, urlparse, urlunparse

import httpx

from ..config import Settings, get_settings
from ..providers import ProviderCapabilities
from ..schemas.messages import FileContent, ImageContent, Role
from .concurrency import settle_all

logger = logging.getLogger(__name__)


AttachmentKind = Literal["image", "file"]

DOCUMENT_MIME_TYPES: frozenset[str] = frozenset({"application/pdf"})


class AttachmentFetchError(RuntimeError):
    """Raised internally when attachment bytes cannot be retrieved."""


def classify_attachment(
    mime_type: str | None,
    capabilities: ProviderCapabilities,
    role: Role,
) -> AttachmentKind | None:
    """Decide how an attachment is presented to the provider, if at all.

    Images become ``image`` items for user-authored messages and ``file`` items
    on the assistant side. Documents need provider support. Any other
    ``text/*`` or ``application/*`` payload is only forwarded for assistants.
    """

    if not mime_type:
        return None
    normalized = mime_type.split(";", 1)[0].strip().lower()
    is_assistant = role == "assistant"

    if normalized.startswith("image/"):
        return "file" if is_assistant else "image"
    if normalized in DOCUMENT_MIME_TYPES and capabilities.supports_documents:
        return "file"
    if is_assistant and (
        normalized.startswith("text/") or normalized.startswith("application/")
    ):
        return "file"
    return None


def decode_data_uri(value: str) -> tuple[bytes | None, str | None]:
    if not isinstance(value, str) or not value.startswith("data:"):
        return None, None

    header, _, data_part = value.partition(",")
    if not data_part:
        return None, None

    meta = header[5:]
    if ";" in meta:
        mime, *params = meta.split(";")
    else:
        mime, params = meta, []

    mime_type = mime or "application/octet-stream"
    if "base64" in {param.lower() for param in params}:
        cleaned = data_part.strip().replace("\n", "").replace("\r", "")
        padding = len(cleaned) % 4
        if padding:
            cleaned += "=" * (4 - padding)
        try:
            return base64.b64decode(cleaned, validate=True), mime_type
        except (binascii.Error, ValueError):
            return None, None
    return unquote_to_bytes(data_part), mime_type


def is_http_url(value: str) -> bool:
    lower = value.lower()
    return lower.startswith("http://") or lower.startswith("https://")


def redact_url(url: str) -> str:
    try:
        parsed = urlparse(url)
        return urlunparse(parsed._replace(query="", fragment=""))
    except ValueError:
        return url


class AttachmentResolver:
    """Fetch attachment bytes and turn them into provider content items."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client

    async def fetch(self, url: str) -> bytes:
        """Return the bytes behind ``url``; raise `AttachmentFetchError` on failure."""

        if url.startswith("data:"):
            data, _ = decode_data_uri(url)
            if data is None:
                raise AttachmentFetchError("Malformed data URI")
            return data

        if not is_http_url(url):
            raise AttachmentFetchError(f"Unsupported attachment URL: {redact_url(url)}")

        if self._http_client is not None:
            return await self._download(self._http_client, url)

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.attachment_fetch_timeout, connect=10.0),
            follow_redirects=True,
        ) as client:
            return await self._download(client, url)

    async def _download(self, client: httpx.AsyncClient, url: str) -> bytes:
        max_bytes = self._settings.attachment_max_bytes
        try:
            async with client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise AttachmentFetchError(
                        f"Attachment fetch returned HTTP {response.status_code}"
                    )
                chunks: list[bytes] = []
                total = 0
                async for chunk in response.aiter_bytes():
                    if not chunk:
                        continue
                    total += len(chunk)
                    if total > max_bytes:
                        raise AttachmentFetchError(
                            f"Attachment exceeds maximum size of {max_bytes} bytes"
                        )
                    chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise AttachmentFetchError(str(exc)) from exc
        return b"".join(chunks)

    async def resolve(
        self,
        url: str,
        mime_type: str | None,
        capabilities: ProviderCapabilities,
        role: Role,
    ) -> ImageContent | FileContent | None:
        """Fetch and classify one attachment. Returns ``None`` instead of raising."""

        kind = classify_attachment(mime_type, capabilities, role)
        if kind is None:
            logger.debug(
                "Skipping attachment %s (mime=%s, role=%s, provider=%s)",
                redact_url(url),
                mime_type,
                role,
                capabilities.name,
            )
            return None

        try:
            data = await self.fetch(url)
        except AttachmentFetchError as exc:
            logger.warning("Failed to process attachment %s: %s", redact_url(url), exc)
            return None

        assert mime_type is not None
        if kind == "image":
            return ImageContent(image=data, mime_type=mime_type)
        return FileContent(data=data, mime_type=mime_type)

    async def resolve_many(
        self,
        attachments: Sequence[tuple[str, str | None]],
        capabilities: ProviderCapabilities,
        role: Role,
    ) -> list[ImageContent | FileContent]:
        """Resolve ``(url, mime_type)`` pairs concurrently, keeping input order."""

        outcomes = await settle_all(
            self.resolve(url, mime_type, capabilities, role)
            for url, mime_type in attachments
        )
        resolved: list[ImageContent | FileContent] = []
        for (url, _), outcome in zip(attachments, outcomes):
            if not outcome.ok:
                logger.warning(
                    "Attachment resolution failed for %s: %s",
                    redact_url(url),
                    outcome.error,
                )
                continue
            if outcome.value is not None:
                resolved.append(outcome.value)
        return resolved


__all__ = [
    "AttachmentFetchError",
    "AttachmentResolver",
    "classify_attachment",
    "decode_data_uri",
    "is_http_url",
    "redact_url",
]

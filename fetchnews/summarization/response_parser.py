"""Response normalization for summarize endpoints."""
from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from fetchnews.config import CombinedTitle
from fetchnews.errors import (
    EmptyResultError,
    MalformedResponseError,
    RequestFailedError,
    preview,
)
from fetchnews.models import (
    DEFAULT_TITLE,
    PLACEHOLDER_TEXT,
    CombinedSummary,
    GenerationResult,
    SourceItem,
)
from fetchnews.topics import LOCAL_TOPIC

logger = logging.getLogger(__name__)

_HAS_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class RequestShape:
    """What was asked of the backend, used to interpret its answer."""

    topics: Sequence[str]
    is_batch: bool = False
    # Region sent as geo with the "local" topic, if any
    region: Optional[str] = None

    @property
    def single_topic(self) -> Optional[str]:
        """The lone requested topic, or None for multi-topic requests."""
        if len(self.topics) == 1:
            return self.topics[0]
        return None


def coerce_text(value: Any) -> str:
    """Return stripped text, or the placeholder for blank / non-string values."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return PLACEHOLDER_TEXT


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_http_url(value: Any) -> Optional[str]:
    """Article links without a scheme get ``https://``."""
    url = _optional_str(value)
    if url is None or _HAS_SCHEME.match(url):
        return url
    return f"https://{url}"


def selection_title(shape: RequestShape) -> str:
    """Title naming what was asked for, e.g. "Top business" or "Top local — Texas"."""
    topics = list(shape.topics)
    if LOCAL_TOPIC in topics and shape.region:
        return f"Top local — {shape.region}"
    if len(topics) == 1:
        return f"Top {topics[0]}"
    if topics:
        return f"Top — {', '.join(topics)}"
    return DEFAULT_TITLE


class ResponseNormalizer:
    """Normalizes backend summarize payloads into a GenerationResult.

    The backend has shipped several shapes over time: a ``combined`` object
    keyed by ``summary`` or ``text``, an ``items`` list whose first entry
    doubles as the combined summary, or a bare list of items. All of them
    end up as the same canonical result; anything else is a typed failure.
    """

    def __init__(self, title_mode: CombinedTitle = CombinedTitle.SELECTION):
        self.title_mode = title_mode

    def normalize(self, raw: str, status: int, shape: RequestShape) -> GenerationResult:
        """Normalize a raw response body.

        Args:
            raw: Response body text
            status: HTTP status code
            shape: Request that produced the response

        Returns:
            Canonical generation result

        Raises:
            RequestFailedError: Status outside 2xx
            MalformedResponseError: Body is not a JSON object or list
            EmptyResultError: Neither a combined summary nor items present
        """
        if not 200 <= status < 300:
            logger.warning(
                "Summarize request failed",
                extra={"status": status, "body_preview": preview(raw)},
            )
            raise RequestFailedError(status, raw)

        data = self._parse(raw)

        if isinstance(data, list):
            raw_items: List[Any] = data
            raw_combined: Any = None
        else:
            raw_items = data.get("items") if isinstance(data.get("items"), list) else []
            raw_combined = data.get("combined")

        items = self._normalize_items(raw_items, shape)

        if isinstance(raw_combined, dict):
            combined = self._normalize_combined(raw_combined, shape)
        elif items:
            first = items[0]
            combined = CombinedSummary(
                id=first.id,
                title=first.title or DEFAULT_TITLE,
                body_text=first.body_text,
                audio_ref=first.audio_ref,
            )
            logger.debug("Synthesized combined summary from first item", extra={"item_id": first.id})
        else:
            raise EmptyResultError()

        return GenerationResult(combined=combined, items=items)

    def _parse(self, raw: str) -> Any:
        """Structural parse; only objects and lists are acceptable payloads."""
        text = (raw or "").strip()
        if not text:
            raise MalformedResponseError(raw, reason="Empty payload")
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            raise MalformedResponseError(raw) from None
        if not isinstance(data, (dict, list)):
            raise MalformedResponseError(raw)
        return data

    def _default_title(self, shape: RequestShape) -> str:
        if self.title_mode is CombinedTitle.SELECTION:
            return selection_title(shape)
        return DEFAULT_TITLE

    def _normalize_combined(self, raw: dict, shape: RequestShape) -> CombinedSummary:
        body = raw.get("summary")
        if not (isinstance(body, str) and body.strip()):
            body = raw.get("text")
        return CombinedSummary(
            id=_optional_str(self._as_id(raw.get("id"))) or f"combined-{int(time.time() * 1000)}",
            title=_optional_str(raw.get("title")) or self._default_title(shape),
            body_text=coerce_text(body),
            audio_ref=_optional_str(raw.get("audioUrl")),
        )

    def _normalize_items(self, raw_items: List[Any], shape: RequestShape) -> List[SourceItem]:
        items: List[SourceItem] = []
        for idx, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object item", extra={"index": idx})
                continue
            topic = _optional_str(raw.get("topic"))
            if topic is None and not shape.is_batch:
                topic = shape.single_topic
            items.append(
                SourceItem(
                    id=_optional_str(self._as_id(raw.get("id"))) or f"item-{idx}",
                    title=_optional_str(raw.get("title")) or "",
                    body_text=coerce_text(raw.get("summary")),
                    source_name=_optional_str(raw.get("source")),
                    topic_key=topic,
                    external_link=normalize_http_url(raw.get("url")),
                    audio_ref=_optional_str(raw.get("audioUrl")),
                )
            )
        return items

    @staticmethod
    def _as_id(value: Any) -> Any:
        # Some backends send numeric ids
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

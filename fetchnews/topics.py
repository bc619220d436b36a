"""Topic catalog and length options."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from fetchnews.models import Location

LOCAL_TOPIC = "local"


@dataclass(frozen=True)
class Topic:
    key: str
    label: str
    custom: bool = False


CORE_TOPICS: List[Topic] = [
    Topic("business", "Business"),
    Topic("entertainment", "Entertainment"),
    Topic("general", "General"),
    Topic("health", "Health"),
    Topic("science", "Science"),
    Topic("sports", "Sports"),
    Topic("technology", "Technology"),
    Topic("world", "World"),
]


class LengthPreference(str, Enum):
    """Target length of the combined summary."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @property
    def word_count(self) -> int:
        return _WORD_BUDGETS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_WORD_BUDGETS = {
    LengthPreference.SHORT: 200,
    LengthPreference.MEDIUM: 1000,
    LengthPreference.LONG: 2000,
}


def local_label(location: Optional[Location]) -> str:
    """Label for the "local" chip: region, else country, else "Local"."""
    if location is None:
        return ""
    return location.region or location.country or "Local"


def catalog(location: Optional[Location], custom_keys: Iterable[str] = ()) -> List[Topic]:
    """Topics a presentation layer can offer.

    "local" is listed first, and only while a Location is known. Custom
    keys come last, labelled with themselves.
    """
    topics: List[Topic] = []
    if location is not None:
        topics.append(Topic(LOCAL_TOPIC, local_label(location)))
    topics.extend(CORE_TOPICS)
    topics.extend(Topic(key, key, custom=True) for key in custom_keys)
    return topics

"""
Briefing generation for fetchnews.

Provides response normalization and the phased generation pipeline.
"""

from .response_parser import (
    RequestShape,
    ResponseNormalizer,
    coerce_text,
    normalize_http_url,
    selection_title,
)
from .pipeline import GenerationPipeline

__all__ = [
    "RequestShape",
    "ResponseNormalizer",
    "coerce_text",
    "normalize_http_url",
    "selection_title",
    "GenerationPipeline",
]

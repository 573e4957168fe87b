"""Article synthesis and WordPress publishing."""

from .synthesizer import ContentSynthesizer, synthesize
from .wordpress import WordPressPublisher

__all__ = ["ContentSynthesizer", "WordPressPublisher", "synthesize"]

"""
Note Anonymisation
==================
Mood notes are free text and routinely mention people, workplaces and
places ("argued with Tom at the office in Leeds"). Before any note is
embedded in an AI analysis prompt it goes through this pipeline:

    note -> regex   (emails, phone numbers, URLs, numeric dates, long digit runs)
         -> spaCy   (people, organisations, places, dated expressions)
         -> cleaned note

The analysis only needs the feeling and the situation, not who or where.
Stored notes are never modified; only the copy that leaves for the AI
provider is scrubbed.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import ClassVar

import spacy
from spacy.language import Language

logger = logging.getLogger(__name__)


@dataclass
class ScrubbedNote:
    """A cleaned note plus per-category replacement counts (never the values)."""

    text: str
    replacements: Counter = field(default_factory=Counter)

    @property
    def changed(self) -> bool:
        return sum(self.replacements.values()) > 0


# Order matters: the more specific patterns run before the generic digit run.
_PATTERNS: list[tuple[str, re.Pattern[str], str]] = [
    ("EMAIL", re.compile(r"\b[\w.%+\-]+@[\w.\-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    ("URL", re.compile(r"(?:https?://|www\.)[^\s,;\"'<>()\[\]]{3,}"), "[URL]"),
    ("DATE", re.compile(r"\b\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}\b"), "[DATE]"),
    (
        "PHONE",
        re.compile(r"(?<![\w+])\+?\(?\d(?:[\s\-().]{0,2}\d){7,}(?![\w])"),
        "[PHONE]",
    ),
    ("NUMBER", re.compile(r"\b\d{6,}\b"), "[NUMBER]"),
]


class AnonymisationService:
    """Scrubs identifying details from mood notes.

    The spaCy model is optional at runtime: without it only the regex step
    runs and a warning is logged once at start-up.
    """

    _ENTITY_TOKENS: ClassVar[dict[str, str]] = {
        "PERSON": "[NAME]",
        "ORG": "[ORG]",
        "GPE": "[PLACE]",
        "LOC": "[PLACE]",
        "FAC": "[PLACE]",
        "DATE": "[DATE]",
    }

    def __init__(self, spacy_model: str = "en_core_web_sm") -> None:
        self._nlp: Language | None = None
        try:
            self._nlp = spacy.load(spacy_model, disable=["parser", "lemmatizer"])
            logger.info("Note anonymisation using spaCy model '%s'", spacy_model)
        except OSError:
            logger.warning(
                "spaCy model '%s' is not installed; notes are scrubbed with regex "
                "only. Install it with: python -m spacy download %s",
                spacy_model,
                spacy_model,
            )

    @property
    def ner_available(self) -> bool:
        return self._nlp is not None

    def scrub(self, note: str) -> ScrubbedNote:
        if not note or not note.strip():
            return ScrubbedNote(text="")

        counts: Counter = Counter()
        text = note
        for label, pattern, token in _PATTERNS:
            text, n = pattern.subn(token, text)
            if n:
                counts[label] += n

        text = self._scrub_entities(text, counts)
        text = re.sub(r"\s{2,}", " ", text).strip()

        if counts:
            logger.debug("Scrubbed note: %s", dict(counts))
        return ScrubbedNote(text=text, replacements=counts)

    def scrub_text(self, note: str) -> str:
        return self.scrub(note).text

    def _scrub_entities(self, text: str, counts: Counter) -> str:
        if self._nlp is None:
            return text

        doc = self._nlp(text)
        spans: list[tuple[int, int, str, str]] = []
        for ent in doc.ents:
            token = self._ENTITY_TOKENS.get(ent.label_)
            if token is None:
                continue
            # inside a placeholder we already inserted, e.g. "[EMAIL]"
            if ent.start_char > 0 and text[ent.start_char - 1] == "[":
                continue
            # "this morning", "yesterday" carry mood context and identify no one
            if ent.label_ == "DATE" and not any(c.isdigit() for c in ent.text):
                continue
            spans.append((ent.start_char, ent.end_char, token, ent.label_))

        for start, end, token, label in sorted(spans, reverse=True):
            text = text[:start] + token + text[end:]
            counts[label] += 1
        return text


_default_service: AnonymisationService | None = None


def get_anonymisation_service() -> AnonymisationService:
    global _default_service
    if _default_service is None:
        _default_service = AnonymisationService()
    return _default_service

"""
Tests for note anonymisation.

Mood notes are scrubbed before they are written into an AI analysis
prompt. Regex cases run everywhere; NER cases are skipped when the spaCy
model is not installed.

Run: pytest backend/tests/test_anonymisation.py -v
"""

import pytest

from moodflow.services.anonymisation import AnonymisationService, ScrubbedNote


@pytest.fixture(scope="module")
def service() -> AnonymisationService:
    """Shared service instance; the spaCy model loads once."""
    return AnonymisationService()


@pytest.fixture(scope="module")
def regex_only() -> AnonymisationService:
    """No spaCy model: only the regex step runs, so output is exact."""
    return AnonymisationService(spacy_model="xx_model_not_installed")


def assert_not_in(original: str, result: ScrubbedNote) -> None:
    assert original.lower() not in result.text.lower(), (
        f"'{original}' was NOT scrubbed. Output: {result.text}"
    )


# -----------------------------------------------------------------------
# NER (spaCy-dependent)
# -----------------------------------------------------------------------

class TestEntities:

    def test_person_org_place(self, service: AnonymisationService) -> None:
        if not service.ner_available:
            pytest.skip("spaCy NER model not installed")
        result = service.scrub("Argued with Sarah at Deloitte in Manchester, feeling drained")
        assert_not_in("Sarah", result)
        assert_not_in("Deloitte", result)
        assert_not_in("Manchester", result)
        assert "feeling drained" in result.text
        assert result.changed

    def test_relative_dates_survive(self, service: AnonymisationService) -> None:
        if not service.ner_available:
            pytest.skip("spaCy NER model not installed")
        result = service.scrub("Slept badly yesterday and this morning was rough")
        assert "yesterday" in result.text


# -----------------------------------------------------------------------
# Regex patterns
# -----------------------------------------------------------------------

class TestPatterns:

    @pytest.mark.parametrize(
        "text, secret, token",
        [
            ("My therapist emailed me at sarah.jones@nhs.net about it", "sarah.jones@nhs.net", "[EMAIL]"),
            ("Contact me at jay+notes@gmail.com", "jay+notes@gmail.com", "[EMAIL]"),
            ("Saw this on https://twitter.com/myprofile and felt awful", "twitter.com/myprofile", "[URL]"),
            ("Read about it on www.reddit.com/r/anxiety", "www.reddit.com", "[URL]"),
            ("Appointment on 15/03/1998", "15/03/1998", "[DATE]"),
            ("Born 22-11-2001", "22-11-2001", "[DATE]"),
            ("Called the helpline on 07911 123456 but no answer", "07911 123456", "[PHONE]"),
            ("Mum called from +44 7911 123456", "7911 123456", "[PHONE]"),
            ("Counsellor at (212) 555-0198", "555-0198", "[PHONE]"),
            ("Call 212-555-0198 for support", "212-555-0198", "[PHONE]"),
            ("Order number 4839201 got lost", "4839201", "[NUMBER]"),
        ],
    )
    def test_replaced(self, service, text, secret, token) -> None:
        result = service.scrub(text)
        assert_not_in(secret, result)
        assert token in result.text

    def test_small_numbers_survive(self, regex_only: AnonymisationService) -> None:
        result = regex_only.scrub("slept 7 - 8 hours, ran 5k, 30 min walk")
        assert "7 - 8 hours" in result.text
        assert "30 min walk" in result.text
        assert "[PHONE]" not in result.text


# -----------------------------------------------------------------------
# Everyday notes
# -----------------------------------------------------------------------

class TestEverydayNotes:

    def test_plain_note_unchanged(self, regex_only: AnonymisationService) -> None:
        result = regex_only.scrub("bad day. need to sleep")
        assert result.text == "bad day. need to sleep"
        assert not result.changed

    def test_emoji_survives(self, service: AnonymisationService) -> None:
        result = service.scrub("feeling 😭 today, emailed help@clinic.org")
        assert "😭" in result.text
        assert "[EMAIL]" in result.text

    def test_no_double_spaces(self, service: AnonymisationService) -> None:
        result = service.scrub("Saw dr.smith@clinic.com   yesterday")
        assert "  " not in result.text


# -----------------------------------------------------------------------
# Edge cases and audit counts
# -----------------------------------------------------------------------

class TestEdgeCases:

    def test_empty(self, service: AnonymisationService) -> None:
        assert service.scrub("").text == ""
        assert service.scrub("   \n\t  ").text == ""

    def test_scrub_text_returns_string(self, regex_only: AnonymisationService) -> None:
        assert regex_only.scrub_text("mail me at a@b.co") == "mail me at [EMAIL]"

    def test_counts_hold_labels_not_values(self, service: AnonymisationService) -> None:
        result = service.scrub("Email sarah@x.com and john@y.com")
        assert result.replacements["EMAIL"] == 2
        for key, value in result.replacements.items():
            assert isinstance(value, int)
            assert "@" not in key

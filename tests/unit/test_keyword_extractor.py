"""Unit tests for frequency-based keyword extraction."""

from __future__ import annotations

from emergency_kb.services.ingestion.keyword_extractor import extract_keywords


class TestExtractKeywords:
    def test_most_frequent_first(self) -> None:
        text = "Apply pressure. Pressure stops bleeding; keep pressure on."
        assert extract_keywords(text) == "pressure apply stops bleeding keep"

    def test_short_words_dropped(self) -> None:
        assert extract_keywords("a an the cut") == ""

    def test_caps_at_ten(self) -> None:
        words = [f"word{i:02d}" for i in range(15)]
        assert len(extract_keywords(" ".join(words)).split()) == 10

    def test_lowercases(self) -> None:
        assert extract_keywords("CPR Chest COMPRESSIONS chest") == "chest compressions"

"""Tests for the emoji dataset and ranked search."""

import emoji
import pytest

from emo.dataset import (
    EmojiRecord,
    build_records,
    find_glyph,
    first_emoji,
    load_emojis,
    search,
)


class TestBuildRecords:

    def test_only_fully_qualified_entries(self):
        data = {
            "😀": {"en": ":grinning_face:", "status": emoji.STATUS["fully_qualified"],
                   "alias": [":grinning:"]},
            "☺": {"en": ":smiling_face:", "status": emoji.STATUS["unqualified"]},
        }
        records = build_records(data, keyword_table={})
        assert [r.glyph for r in records] == ["😀"]

    def test_names_aliases_and_extra_keywords(self):
        data = {
            "🔥": {"en": ":fire:", "status": emoji.STATUS["fully_qualified"], "alias": [":flame:"]},
        }
        records = build_records(data, keyword_table={"🔥": ["lit", "trending"]})
        record = records[0]
        assert record.name == "fire"
        assert record.shortcode == ":fire:"
        assert record.keywords == ["flame", "lit", "trending"]
        # unicode name equals the CLDR name, so no separate definition
        assert record.definition is None

    def test_definition_from_unicode_name(self):
        data = {
            "\u2764\ufe0f": {"en": ":red_heart:", "status": emoji.STATUS["fully_qualified"]},
        }
        record = build_records(data, keyword_table={})[0]
        assert record.name == "red heart"
        assert record.definition == "heavy black heart"


class TestSearch:

    def test_exact_name_ranks_first(self, records):
        results = search(records, "fire", 3)
        assert [c.glyph for c in results] == ["🔥", "🧯", "🚒"]
        assert [c.rank for c in results] == [1, 2, 3]

    def test_keyword_tier_in_dataset_order(self, records):
        results = search(records, "deploy", 5)
        assert [c.glyph for c in results] == ["📦", "🚀", "🚢"]

    def test_limit_is_respected(self, records):
        assert len(search(records, "deploy", 2)) == 2

    def test_multi_word_requires_all_words(self, records):
        results = search(records, "fire engine", 5)
        assert [c.glyph for c in results] == ["🚒"]

    def test_case_insensitive(self, records):
        assert search(records, "ROCKET", 1)[0].glyph == "🚀"

    def test_substring_tiers(self, records):
        # "exting" only appears inside a name
        assert search(records, "exting", 1)[0].glyph == "🧯"
        # "quen" only appears inside a keyword
        assert search(records, "quen", 1)[0].glyph == "🧯"
        # "black" only appears in a definition
        assert search(records, "black", 1)[0].glyph == "\u2764\ufe0f"

    def test_no_duplicates_across_tiers(self, records):
        glyphs = [c.glyph for c in search(records, "fire", 10)]
        assert len(glyphs) == len(set(glyphs))

    def test_deterministic(self, records):
        first = [c.glyph for c in search(records, "deploy", 3)]
        second = [c.glyph for c in search(records, "deploy", 3)]
        assert first == second

    @pytest.mark.parametrize("term,limit", [("", 3), ("   ", 3), ("fire", 0)])
    def test_empty_inputs_return_nothing(self, records, term, limit):
        assert search(records, term, limit) == []

    def test_no_match(self, records):
        assert search(records, "zzzzqqq", 5) == []

    def test_candidates_carry_records(self, records):
        candidate = search(records, "rocket", 1)[0]
        assert isinstance(candidate.record, EmojiRecord)
        assert candidate.record.name == "rocket"


class TestGlyphHelpers:

    def test_first_emoji_of_text(self):
        assert first_emoji("🚀 to the moon") == "🚀"

    def test_first_emoji_falls_back_to_first_char(self):
        assert first_emoji("x marks") == "x"

    def test_find_glyph_exact(self, records):
        assert find_glyph(records, "🔥").name == "fire"

    def test_find_glyph_without_variation_selector(self, records):
        assert find_glyph(records, "\u2764").name == "red heart"

    def test_find_glyph_missing(self, records):
        assert find_glyph(records, "🦀") is None


class TestBundledDataset:

    def test_loads_and_is_cached(self):
        first = load_emojis()
        assert len(first) > 1000
        assert load_emojis() is first

    def test_fire(self):
        assert search(load_emojis(), "fire", 1)[0].glyph == "🔥"

    def test_red_heart(self):
        assert "\u2764" in search(load_emojis(), "red heart", 1)[0].glyph

    def test_keyword_table_is_merged(self):
        results = [c.glyph for c in search(load_emojis(), "deploy", 5)]
        assert "🚀" in results
        assert "📦" in results

import re

import pytest

from ritual.recs.notes import (
    BANNED_WORDS,
    MAX_NOTE_LENGTH,
    NoteContext,
    generate_confidence_note,
    generate_reasoning,
    is_note_safe,
)
from ritual.schemas.style import ConfidencePattern, StyleProfile
from ritual.schemas.weather import WeatherContext

from fixtures import FIXED_NOW, make_item, sample_wardrobe, style_profile

SECOND_PERSON = re.compile(r"\b(you|your|you're|yours|yourself|you've)\b", re.IGNORECASE)
CONDITIONS = ["sunny", "cloudy", "rainy", "snowy", "windy", "stormy"]
STYLES = ["encouraging", "witty", "poetic"]


def ctx(condition="cloudy", temperature=16.0, style="encouraging", profile=None, approximate=False) -> NoteContext:
    weather = WeatherContext(temperature=temperature, condition=condition, location="London", timestamp=FIXED_NOW)
    return NoteContext(
        weather=weather,
        profile=profile or style_profile(),
        style=style,
        now=FIXED_NOW,
        approximate=approximate,
    )


def outfits():
    items = sample_wardrobe()
    return [items[0:2], items[3:5], [items[5]], [items[1], items[4], items[6], items[10]]]


@pytest.mark.parametrize("style", STYLES)
@pytest.mark.parametrize("condition", CONDITIONS)
def test_notes_are_safe_in_every_tone_and_weather(style, condition):
    for items in outfits():
        for approximate in (False, True):
            note = generate_confidence_note(items, ctx(condition, style=style, approximate=approximate))
            words = set(re.findall(r"[a-z\-]+", note.lower()))
            assert not words & BANNED_WORDS
            assert SECOND_PERSON.search(note)
            assert is_note_safe(note)


def test_note_mentions_the_weather():
    note = generate_confidence_note(outfits()[1], ctx("rainy"))
    assert "rainy" in note.lower()


def test_note_references_prior_positive_feedback():
    items = outfits()[1]
    profile = style_profile().model_copy(
        update={"confidence_patterns": [ConfidencePattern(item_combination=[i.id for i in items], average_rating=4.5)]}
    )
    note = generate_confidence_note(items, ctx(profile=profile))
    assert note.startswith("You felt great in this before")


def test_low_rated_history_is_not_celebrated():
    items = [make_item("plain-top", "top", worn_days_ago=2), make_item("plain-skirt", "bottom", worn_days_ago=2)]
    profile = StyleProfile(
        user_id="u1",
        confidence_patterns=[ConfidencePattern(item_combination=["plain-top", "plain-skirt"], average_rating=2.0)],
    )
    note = generate_confidence_note(items, ctx(profile=profile))
    assert "felt great" not in note


def test_note_mentions_occasion_from_profile():
    items = [make_item("blazer", "top", tags=["work"], worn_days_ago=2), make_item("trousers", "bottom", worn_days_ago=2)]
    note = generate_confidence_note(items, ctx())
    assert "work" in note


def test_tone_changes_the_note():
    items = outfits()[0]
    notes = {style: generate_confidence_note(items, ctx(style=style)) for style in STYLES}
    assert len(set(notes.values())) == 3


def test_approximation_is_acknowledged():
    items = [make_item("tee", "top", worn_days_ago=2), make_item("jeans", "bottom", worn_days_ago=2)]
    note = generate_confidence_note(items, ctx(approximate=True, profile=StyleProfile.neutral("u1")))
    assert "close match" in note


def test_long_poetic_approximate_note_is_trimmed_not_replaced():
    colors = ["emerald", "ivory", "charcoal"]
    items = [
        make_item("wrap-top", "top", colors=colors, tags=["weekend brunch"]),
        make_item("wide-trousers", "bottom", colors=colors),
    ]
    profile = StyleProfile(user_id="u1", occasion_preferences={"weekend brunch": 0.9})
    note = generate_confidence_note(items, ctx("rainy", temperature=11.0, style="poetic", profile=profile, approximate=True))
    assert is_note_safe(note)
    assert len(note) <= MAX_NOTE_LENGTH
    assert "rainy" in note
    assert "weekend brunch" in note
    assert "quiet brilliance" in note
    assert "close match" in note


def test_note_is_deterministic_for_the_same_outfit():
    items = outfits()[2]
    assert generate_confidence_note(items, ctx()) == generate_confidence_note(items, ctx())


@pytest.mark.parametrize(
    "note",
    [
        "",
        "   ",
        "This outfit looks great today.",
        "You look bad in this.",
        "Your slimming silhouette wins.",
        "Your exotic look shines.",
        "You " + "really " * 80,
    ],
)
def test_unsafe_notes_are_rejected(note):
    assert not is_note_safe(note)


def test_safe_note_is_accepted():
    assert is_note_safe("You look ready for today, and your confidence shows.")


def test_reasoning_reflects_conditions():
    items = outfits()[0]
    cold = generate_reasoning(items, ctx(temperature=3).weather, FIXED_NOW)
    hot = generate_reasoning(items, ctx("sunny", temperature=30).weather, FIXED_NOW)
    assert any("cold" in r for r in cold)
    assert any("warm weather" in r for r in hot)
    assert "Perfect for sunny weather" in hot

import pytest
from pydantic import ValidationError

from latelier.models import (
    DiaryAnalysis,
    HistoryItem,
    SegmentRole,
    VocabularyItem,
    strict_json_schema,
)

from conftest import SAMPLE_ANALYSIS, sample_analysis


def test_segments_reproduce_translation():
    analysis = DiaryAnalysis.model_validate(SAMPLE_ANALYSIS)
    assert analysis.segments_match_translation()
    assert "".join(s.text for s in analysis.segmented_text) == analysis.translated_text


def test_segments_mismatch_detected():
    data = sample_analysis()
    data["segmentedText"] = data["segmentedText"][:-1]
    analysis = DiaryAnalysis.model_validate(data)
    assert not analysis.segments_match_translation()


def test_role_outside_closed_set_rejected():
    data = sample_analysis()
    data["segmentedText"][0]["role"] = "adverbial"
    with pytest.raises(ValidationError):
        DiaryAnalysis.model_validate(data)


def test_missing_required_field_rejected():
    data = sample_analysis()
    del data["grammarPoints"]
    with pytest.raises(ValidationError):
        DiaryAnalysis.model_validate(data)


def test_cultural_note_optional():
    data = sample_analysis()
    del data["culturalNote"]
    assert DiaryAnalysis.model_validate(data).cultural_note is None


def test_vocabulary_grouped_by_pos_in_first_seen_order():
    data = sample_analysis()
    data["vocabulary"].append({"word": "très", "gender": "N/A", "meaning": "很", "pos": ""})
    groups = DiaryAnalysis.model_validate(data).vocabulary_by_pos()
    assert list(groups) == ["adverb", "verb", "noun", "Autre"]
    assert [v.word for v in groups["verb"]] == ["aller", "lire"]


@pytest.mark.parametrize("gender,kind", [
    ("masculine", "masculine"),
    ("Féminin", "feminine"),
    ("N/A", "n/a"),
    ("neutre", None),
])
def test_gender_known_values_normalised_unknown_passed_through(gender, kind):
    item = VocabularyItem(word="x", gender=gender, meaning="", pos="noun")
    assert item.gender_kind == kind
    assert item.gender == gender


def test_analysis_is_frozen():
    analysis = DiaryAnalysis.model_validate(SAMPLE_ANALYSIS)
    with pytest.raises(ValidationError):
        analysis.translated_text = "autre"


def test_history_item_serialises_with_camel_case():
    item = HistoryItem(id="abc", timestamp=1, original_text="hi", analysis=DiaryAnalysis.model_validate(SAMPLE_ANALYSIS))
    data = item.to_json()
    assert data["originalText"] == "hi"
    assert data["analysis"]["translatedText"] == SAMPLE_ANALYSIS["translatedText"]
    assert HistoryItem.model_validate(data) == item


def test_strict_schema_closes_objects_and_requires_everything():
    schema = strict_json_schema(DiaryAnalysis)
    assert schema["additionalProperties"] is False
    assert set(schema["required"]) == {
        "translatedText", "segmentedText", "grammarPoints", "verbConjugations",
        "vocabulary", "fixedExpressions", "culturalNote",
    }
    defs = schema["$defs"]
    segment = defs["SentenceSegment"]
    assert segment["additionalProperties"] is False
    assert set(segment["required"]) == {"text", "role", "meaning_cn", "meaning_en", "grammar_info"}
    assert defs["SegmentRole"]["enum"] == [r.value for r in SegmentRole]
    assert "default" not in schema["properties"]["culturalNote"]

from __future__ import annotations

import copy
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SegmentRole(str, Enum):
    SUBJECT = "subject"
    OBJECT = "object"
    PREDICATE = "predicate"
    PREPOSITION = "preposition"
    MODIFIER = "modifier"
    CONNECTIVE = "connective"
    OTHER = "other"


ROLE_LABELS = {
    SegmentRole.SUBJECT: "Sujet (主语)",
    SegmentRole.OBJECT: "Complément (宾语)",
    SegmentRole.PREDICATE: "Prédicat/Verbe (谓语)",
    SegmentRole.PREPOSITION: "Préposition (介词)",
    SegmentRole.MODIFIER: "Modificateur",
    SegmentRole.CONNECTIVE: "Connecteur",
    SegmentRole.OTHER: "Autre",
}

ROLE_COLORS = {
    SegmentRole.SUBJECT: "blue",
    SegmentRole.OBJECT: "blue",
    SegmentRole.PREDICATE: "green",
    SegmentRole.PREPOSITION: "orange",
    SegmentRole.MODIFIER: "purple",
    SegmentRole.CONNECTIVE: "indigo",
    SegmentRole.OTHER: "gray",
}

_GENDER_ALIASES = {
    "masculine": "masculine",
    "masculin": "masculine",
    "m": "masculine",
    "feminine": "feminine",
    "féminin": "feminine",
    "feminin": "feminine",
    "f": "feminine",
    "n/a": "n/a",
    "na": "n/a",
    "none": "n/a",
    "": "n/a",
}

UNGROUPED_POS = "Autre"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SentenceSegment(_Frozen):
    text: str
    role: SegmentRole
    meaning_cn: str
    meaning_en: str
    grammar_info: str

    @property
    def label(self) -> str:
        return ROLE_LABELS[self.role]

    @property
    def color(self) -> str:
        return ROLE_COLORS[self.role]


class GrammarPoint(_Frozen):
    point: str
    explanation: str
    example: str


class VerbConjugation(_Frozen):
    infinitive: str
    tense: str
    group: str = Field(..., description='e.g. "1st Group (-er)", "2nd Group (-ir)", "3rd Group"')
    explanation: str


class VocabularyItem(_Frozen):
    word: str
    gender: str = Field(..., description='"masculine", "feminine", or "N/A"')
    meaning: str
    pos: str = Field(..., description="Part of speech: noun, verb, adjective, adverb, preposition, etc.")

    @property
    def gender_kind(self) -> Optional[str]:
        """Known gender as masculine / feminine / n/a, or None when the label is not recognised."""
        return _GENDER_ALIASES.get((self.gender or "").strip().lower())


class FixedExpression(_Frozen):
    expression: str
    meaning: str
    context: str


class DiaryAnalysis(_Frozen):
    translated_text: str = Field(..., alias="translatedText")
    segmented_text: List[SentenceSegment] = Field(..., alias="segmentedText")
    grammar_points: List[GrammarPoint] = Field(..., alias="grammarPoints")
    verb_conjugations: List[VerbConjugation] = Field(..., alias="verbConjugations")
    vocabulary: List[VocabularyItem]
    fixed_expressions: List[FixedExpression] = Field(..., alias="fixedExpressions")
    cultural_note: Optional[str] = Field(None, alias="culturalNote")

    def segments_match_translation(self) -> bool:
        return "".join(seg.text for seg in self.segmented_text) == self.translated_text

    def vocabulary_by_pos(self) -> Dict[str, List[VocabularyItem]]:
        groups: Dict[str, List[VocabularyItem]] = {}
        for item in self.vocabulary:
            pos = (item.pos or "").strip() or UNGROUPED_POS
            groups.setdefault(pos, []).append(item)
        return groups

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class HistoryItem(_Frozen):
    id: str
    timestamp: int
    original_text: str = Field(..., alias="originalText")
    analysis: DiaryAnalysis

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def strict_json_schema(model) -> dict:
    """JSON schema for ``model`` in the strict form structured-output endpoints accept.

    Every object closes ``additionalProperties`` and lists all of its properties
    as required; optional fields stay nullable instead of omittable.
    """
    schema = copy.deepcopy(model.model_json_schema(by_alias=True))

    def walk(node):
        if isinstance(node, dict):
            node.pop("default", None)
            node.pop("title", None)
            if node.get("type") == "object" and "properties" in node:
                node["additionalProperties"] = False
                node["required"] = list(node["properties"].keys())
            for key, value in node.items():
                if key == "properties":
                    for prop in value.values():
                        walk(prop)
                else:
                    walk(value)
        elif isinstance(node, list):
            for item in node:
                walk(item)

    walk(schema)
    return schema

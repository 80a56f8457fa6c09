import json
import logging

from openai import OpenAI
from pydantic import ValidationError

from latelier.errors import AnalysisServiceError
from latelier.models import DiaryAnalysis, SegmentRole, strict_json_schema

logger = logging.getLogger(__name__)

ANALYSIS_SCHEMA = strict_json_schema(DiaryAnalysis)
ROLE_NAMES = [r.value for r in SegmentRole]


def build_analysis_prompt(text):
    roles = ", ".join(f"'{r}'" for r in ROLE_NAMES)
    return f"""
    Translate the following diary entry into natural, expressive French.
    Then, provide a detailed grammatical analysis and a structural breakdown:
    1. Grammar points (tenses, agreements).
    2. Specific verb conjugations used.
    3. Key vocabulary: List EVERY significant word used in the French translation. For each word, include its gender (if applicable), its meaning in Chinese, and its part of speech (pos).
    4. Fixed expressions or idioms used.
    5. Structural Breakdown: Provide a "segmentedText" array. Each segment must have:
       - "text": The French text segment.
       - "role": One of [{roles}].
       - "meaning_cn": Meaning in Chinese.
       - "meaning_en": Meaning in English.
       - "grammar_info": Brief grammar explanation in English (e.g., "Direct object", "Main verb in passé composé").

    Rules for roles:
    - Subject (主语) and Object (宾语) -> roles 'subject' or 'object'.
    - Predicate (谓语) -> role 'predicate'.
    - Preposition (介词) -> role 'preposition'.
    - Others as 'modifier', 'connective', or 'other'.

    Ensure that joining all "text" fields in "segmentedText" reproduces the exact "translatedText" including spaces and punctuation.
    Use null for "culturalNote" when there is nothing worth noting.

    Diary Entry: {text}
    """


def _strip_fences(content):
    content = content.replace("```json", "").replace("```", "").strip()
    if "{" in content and "}" in content:
        content = content[content.find("{"):content.rfind("}") + 1]
    return content


def parse_analysis(content):
    """Validate a raw response body into a DiaryAnalysis or raise AnalysisServiceError."""
    if not content or not content.strip():
        raise AnalysisServiceError("Empty response from AI")
    try:
        data = json.loads(_strip_fences(content))
    except ValueError as e:
        raise AnalysisServiceError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisServiceError("Response is not a JSON object")
    try:
        return DiaryAnalysis.model_validate(data)
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors()[:3])
        raise AnalysisServiceError(f"Response does not match the analysis schema ({missing})") from e


class AnalysisClient:
    def __init__(self, api_key, base_url, model, client=None):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._client = client

    @classmethod
    def from_config(cls, cfg, client=None):
        return cls(cfg.OPENAI_API_KEY, cfg.OPENAI_BASE_URL, cfg.ANALYSIS_MODEL_ID, client=client)

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise AnalysisServiceError("openai_api_key_missing")
            self._client = OpenAI(base_url=self.base_url, api_key=self.api_key)
        return self._client

    def analyze(self, text):
        text = (text or "").strip()
        if not text:
            raise ValueError("diary text must not be empty")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_analysis_prompt(text)}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "diary_analysis", "strict": True, "schema": ANALYSIS_SCHEMA},
                },
            )
        except AnalysisServiceError:
            raise
        except Exception as e:
            logger.error("Error analyzing diary: %s", e)
            raise AnalysisServiceError(str(e) or "Analysis request failed") from e

        content = None
        if response is not None and getattr(response, "choices", None):
            content = response.choices[0].message.content
        try:
            analysis = parse_analysis(content)
        except AnalysisServiceError as e:
            logger.error("Error analyzing diary: %s", e)
            raise

        if not analysis.segments_match_translation():
            logger.warning("Segments do not reproduce the translation for entry of %d chars", len(text))
        return analysis

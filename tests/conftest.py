import copy
import json
from types import SimpleNamespace

import numpy as np
import pytest

from latelier import create_app
from latelier.config import Config
from latelier.services.ai_service import AnalysisClient
from latelier.services.speech_service import AudioClip

SAMPLE_TEXT = "我今天去咖啡店看书。"

SAMPLE_ANALYSIS = {
    "translatedText": "Aujourd'hui, je suis allé au café pour lire un livre.",
    "segmentedText": [
        {"text": "Aujourd'hui, ", "role": "modifier", "meaning_cn": "今天", "meaning_en": "today", "grammar_info": "Adverb of time"},
        {"text": "je ", "role": "subject", "meaning_cn": "我", "meaning_en": "I", "grammar_info": "Subject pronoun"},
        {"text": "suis allé ", "role": "predicate", "meaning_cn": "去了", "meaning_en": "went", "grammar_info": "Main verb in passé composé"},
        {"text": "au ", "role": "preposition", "meaning_cn": "到", "meaning_en": "to the", "grammar_info": "à + le contraction"},
        {"text": "café ", "role": "object", "meaning_cn": "咖啡店", "meaning_en": "café", "grammar_info": "Indirect complement of place"},
        {"text": "pour ", "role": "connective", "meaning_cn": "为了", "meaning_en": "in order to", "grammar_info": "Purpose"},
        {"text": "lire ", "role": "predicate", "meaning_cn": "读", "meaning_en": "to read", "grammar_info": "Infinitive after pour"},
        {"text": "un livre", "role": "object", "meaning_cn": "一本书", "meaning_en": "a book", "grammar_info": "Direct object"},
        {"text": ".", "role": "other", "meaning_cn": "。", "meaning_en": ".", "grammar_info": "Punctuation"},
    ],
    "grammarPoints": [
        {"point": "Passé composé avec être", "explanation": "Aller forms its passé composé with être.", "example": "je suis allé"},
    ],
    "verbConjugations": [
        {"infinitive": "aller", "tense": "passé composé", "group": "3rd Group", "explanation": "Irregular, auxiliary être."},
        {"infinitive": "lire", "tense": "infinitif", "group": "3rd Group", "explanation": "Infinitive after a preposition."},
    ],
    "vocabulary": [
        {"word": "aujourd'hui", "gender": "N/A", "meaning": "今天", "pos": "adverb"},
        {"word": "aller", "gender": "N/A", "meaning": "去", "pos": "verb"},
        {"word": "café", "gender": "masculine", "meaning": "咖啡店", "pos": "noun"},
        {"word": "lire", "gender": "N/A", "meaning": "读", "pos": "verb"},
        {"word": "livre", "gender": "masculine", "meaning": "书", "pos": "noun"},
    ],
    "fixedExpressions": [
        {"expression": "aller au café", "meaning": "去咖啡馆", "context": "Everyday outing"},
    ],
    "culturalNote": "Le café est un lieu de lecture et de rencontre en France.",
}


def sample_analysis(**overrides):
    data = copy.deepcopy(SAMPLE_ANALYSIS)
    data.update(overrides)
    return data


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, contents=None, error=None):
        self.contents = list(contents or [])
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.contents.pop(0) if len(self.contents) > 1 else (self.contents[0] if self.contents else None)
        return chat_response(content)


class FakeChatClient:
    def __init__(self, contents=None, error=None):
        self.completions = FakeCompletions(contents, error)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


def fake_analysis_client(contents=None, error=None):
    if contents is None and error is None:
        contents = [json.dumps(SAMPLE_ANALYSIS, ensure_ascii=False)]
    fake = FakeChatClient(contents, error)
    return AnalysisClient("test-key", "http://localhost/v1", "test-model", client=fake), fake


class FakeSynth:
    """Stands in for SpeechClient.synthesize and records every call."""

    def __init__(self, error=None, on_call=None):
        self.calls = []
        self.error = error
        self.on_call = on_call

    def synthesize(self, text):
        self.calls.append(text)
        if self.on_call is not None:
            self.on_call(text)
        if self.error is not None:
            raise self.error
        return AudioClip(np.zeros(2400, dtype=np.float32), 24000)


def make_config(tmp_path):
    cfg = Config(str(tmp_path))
    cfg.OPENAI_API_KEY = "test-key"
    cfg.DATA_DIR = str(tmp_path)
    cfg.LOCAL_STORE_PATH = str(tmp_path / "local_store.json")
    cfg.LOG_DIR = str(tmp_path / "logs")
    cfg.HISTORY_LIMIT = 20
    return cfg


@pytest.fixture
def cfg(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def analysis_fake():
    return fake_analysis_client()


@pytest.fixture
def synth():
    return FakeSynth()


@pytest.fixture
def app(cfg, analysis_fake, synth):
    client, _ = analysis_fake
    return create_app(cfg, analysis_client=client, speech_client=synth, testing=True)


@pytest.fixture
def client(app):
    return app.test_client()

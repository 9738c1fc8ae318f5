from agents.keyword_extractor import build_user_prompt, extract_keywords
from agents.types import ExtractedKeywords
from config.registry import KEYWORD_KEY, bind_model

CONVERSATION = [
    {"role": "assistant", "content": "Please introduce yourself."},
    {"role": "user", "content": "I have five years of Django and led a team of four."},
]


def test_dict_payload_is_validated():
    bind_model(
        KEYWORD_KEY,
        lambda **_: {
            "keywords": [
                {"keyword": "Django", "category": "technical", "context": "backend", "mentioned_count": 2},
                {"keyword": "Leadership", "category": "soft_skill", "context": None, "mentioned_count": 0},
            ],
            "summary": "Backend developer with team lead experience.",
        },
    )
    result = extract_keywords(CONVERSATION, "backend")
    assert [k.keyword for k in result.keywords] == ["Django", "Leadership"]
    assert result.keywords[1].mentioned_count == 1
    assert result.summary.startswith("Backend developer")


def test_json_string_and_model_payloads():
    bind_model(KEYWORD_KEY, lambda **_: '{"keywords": [{"keyword": "Go", "category": "technical"}], "summary": ""}')
    assert extract_keywords(CONVERSATION, "backend").keywords[0].keyword == "Go"

    ready = ExtractedKeywords(summary="ok")
    bind_model(KEYWORD_KEY, lambda **_: ready)
    assert extract_keywords(CONVERSATION, "backend") is ready


def test_failures_degrade_to_empty_result():
    def _boom(**_):
        raise RuntimeError("rate limited")

    bind_model(KEYWORD_KEY, _boom)
    assert extract_keywords(CONVERSATION, "backend").keywords == []

    bind_model(KEYWORD_KEY, lambda **_: {"keywords": [{"keyword": "x", "category": "hobby"}]})
    assert extract_keywords(CONVERSATION, "backend") == ExtractedKeywords()


def test_prompt_contains_transcript_and_position():
    calls = []
    bind_model(KEYWORD_KEY, lambda **kw: calls.append(kw) or {"keywords": [], "summary": ""})
    extract_keywords(CONVERSATION, "backend")
    assert calls[0]["prompt"] == build_user_prompt(CONVERSATION, "backend")
    assert "Position: backend" in calls[0]["prompt"]
    assert "[user]: I have five years of Django" in calls[0]["prompt"]
    assert "technical" in calls[0]["system_prompt"]

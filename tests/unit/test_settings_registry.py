import pytest

from config.registry import INTERVIEWER_KEY, bind_model, bound_keys, get_model
from config.routes import AppConfig, LlmRoute, resolve_route
from config.settings import Settings


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.MAX_TURNS == 10
    assert settings.KEYWORD_MEMORY_LIMIT == 20
    assert settings.TEST_MODE is False


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MAX_TURNS", "4")
    monkeypatch.setenv("QUESTION_BANK_USE_RERANKER", "false")
    settings = Settings(_env_file=None)
    assert settings.MAX_TURNS == 4
    assert settings.QUESTION_BANK_USE_RERANKER is False


def test_registry_bind_and_retrieve():
    marker = object()
    bind_model(INTERVIEWER_KEY, lambda **_: marker)
    assert INTERVIEWER_KEY in bound_keys()
    assert get_model(INTERVIEWER_KEY)() is marker


def test_registry_missing_key():
    with pytest.raises(KeyError):
        get_model("models.does_not_exist")


def test_resolve_route():
    route = LlmRoute(name="r1", base_url="http://llm", model="gpt-4o")
    cfg = AppConfig(llm_routes={"r1": route}, registry={"models.interviewer": "r1", "models.broken": "r9"})
    assert resolve_route(cfg, "models.interviewer") is route
    with pytest.raises(KeyError):
        resolve_route(cfg, "models.keyword_extractor")
    with pytest.raises(KeyError):
        resolve_route(cfg, "models.broken")

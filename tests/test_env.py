import os

from quizmachine.utils.env import QuizSettings, ensure_env_loaded, get_quiz_settings


def test_defaults(monkeypatch):
    for name in ("QUIZ_MAX_RETRIES", "QUIZ_HISTORY_LIMIT", "QUIZ_TEMPERATURE", "QUIZ_MAX_TOKENS",
                 "QUIZ_TIME_LIMIT_SEC", "QUIZ_SEED_MAX"):
        monkeypatch.delenv(name, raising=False)
    assert get_quiz_settings() == QuizSettings()
    assert QuizSettings().max_retries == 3
    assert QuizSettings().history_limit == 1000


def test_overrides_are_parsed_and_clamped(monkeypatch):
    monkeypatch.setenv("QUIZ_MAX_RETRIES", "5")
    monkeypatch.setenv("QUIZ_TEMPERATURE", "2.5")
    monkeypatch.setenv("QUIZ_TIME_LIMIT_SEC", "not-a-number")
    settings = get_quiz_settings()
    assert settings.max_retries == 5
    assert settings.temperature == 1.2
    assert settings.time_limit_sec == 15


def test_loose_env_file_lines(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text('QUIZMACHINE_TEST_A: "alpha"\nQUIZMACHINE_TEST_B=beta\n# comment\n', encoding="utf-8")
    monkeypatch.delenv("QUIZMACHINE_TEST_A", raising=False)
    monkeypatch.delenv("QUIZMACHINE_TEST_B", raising=False)

    ensure_env_loaded(str(env_file))

    assert os.environ["QUIZMACHINE_TEST_A"] == "alpha"
    assert os.environ["QUIZMACHINE_TEST_B"] == "beta"
    os.environ.pop("QUIZMACHINE_TEST_A", None)
    os.environ.pop("QUIZMACHINE_TEST_B", None)

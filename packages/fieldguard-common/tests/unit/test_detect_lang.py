from fieldguard.common.bus import _detect_lang


def test_explicit_override_wins(monkeypatch):
    monkeypatch.setenv("FIELDGUARD_LANG", "zh")
    monkeypatch.setenv("LANG", "de_DE.UTF-8")

    assert _detect_lang() == "zh"


def test_system_lang_is_reduced_to_base_language(monkeypatch):
    monkeypatch.delenv("FIELDGUARD_LANG", raising=False)
    monkeypatch.setenv("LANG", "de_DE.UTF-8")

    assert _detect_lang() == "de"


def test_defaults_to_english(monkeypatch):
    monkeypatch.delenv("FIELDGUARD_LANG", raising=False)
    monkeypatch.setenv("LANG", "C.UTF-8")

    assert _detect_lang() == "en"

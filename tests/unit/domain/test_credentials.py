from fusionimg.domain.credentials import resolve_api_key


class TestResolveApiKey:
    def test_explicit_wins(self) -> None:
        env = {"GEMINI_API_KEY": "env-key"}
        assert resolve_api_key("flag-key", environ=env) == "flag-key"

    def test_env_precedence(self) -> None:
        env = {"API_KEY": "c", "GOOGLE_API_KEY": "b", "GEMINI_API_KEY": "a"}
        assert resolve_api_key(environ=env) == "a"
        del env["GEMINI_API_KEY"]
        assert resolve_api_key(environ=env) == "b"
        del env["GOOGLE_API_KEY"]
        assert resolve_api_key(environ=env) == "c"

    def test_blank_values_skipped(self) -> None:
        env = {"GEMINI_API_KEY": "  ", "GOOGLE_API_KEY": "b"}
        assert resolve_api_key("", environ=env) == "b"

    def test_none_when_unset(self) -> None:
        assert resolve_api_key(environ={}) is None

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GOOGLE_API_KEY", "from-env")
        assert resolve_api_key() == "from-env"

import pytest

from swagger_mcp.config import auth_from_env, build_sources, parse_pairs


class TestParsePairs:
    def test_repeated_items(self):
        assert parse_pairs(["local=http://a/api-docs", "dev=spec.yaml"], "--api") == {
            "local": "http://a/api-docs",
            "dev": "spec.yaml",
        }

    def test_comma_separated(self):
        assert parse_pairs(["a=1, b=2"], "--api") == {"a": "1", "b": "2"}

    def test_value_may_contain_equals(self):
        assert parse_pairs(["local=http://a/docs?group=public"], "--api") == {"local": "http://a/docs?group=public"}

    def test_missing_separator(self):
        with pytest.raises(ValueError, match="--api"):
            parse_pairs(["local"], "--api")

    def test_empty_name(self):
        with pytest.raises(ValueError):
            parse_pairs(["=http://a"], "--api")


class TestAuthFromEnv:
    def test_upper_cased_name(self):
        env = {"SWAGGER_MCP_AUTH_LOCAL": "Bearer a", "SWAGGER_MCP_AUTH_MY_API": "Basic b"}
        assert auth_from_env(["local", "my-api", "dev"], env) == {"local": "Bearer a", "my-api": "Basic b"}

    def test_empty_value_ignored(self):
        assert auth_from_env(["local"], {"SWAGGER_MCP_AUTH_LOCAL": ""}) == {}


class TestBuildSources:
    def test_single_spec_is_default_api(self):
        [source] = build_sources("http://x/v3/api-docs", "http://x", {}, {}, {}, default_auth="Bearer t")
        assert source.name == "default"
        assert source.base_url == "http://x"
        assert source.auth == "Bearer t"

    def test_named_apis_with_overrides(self):
        sources = build_sources(
            None, None,
            {"local": "a.yaml", "dev": "b.yaml"},
            {"dev": "Bearer d"},
            {"local": "http://localhost:8080"},
        )
        assert [s.name for s in sources] == ["local", "dev"]
        assert sources[0].base_url == "http://localhost:8080"
        assert sources[0].auth is None
        assert sources[1].auth == "Bearer d"

    def test_positional_spec_comes_first(self):
        sources = build_sources("main.yaml", None, {"extra": "x.yaml"}, {}, {})
        assert [s.name for s in sources] == ["default", "extra"]

    def test_nothing_configured(self):
        assert build_sources(None, None, {}, {}, {}) == []

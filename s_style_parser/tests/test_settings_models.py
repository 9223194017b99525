"""
設定とPydanticモデルのテスト
"""

import json
import math

import pytest

from ..api.models import (
    ParseRequest,
    ParseResponse,
    build_parse_response,
    build_tokenize_response,
)
from ..config.settings import ParserConfig, Settings, SystemConfig
from ..core.trace_logger import TraceLogger


class TestSettings:
    """環境変数からの設定読み込み"""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("S_STYLE_TRACE", "S_STYLE_TRACE_FILE", "DEBUG",
                     "LANGSMITH_PROJECT", "S_STYLE_HISTORY_LIMIT"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = Settings()
        assert config.parser == ParserConfig()
        assert config.parser.trace_enabled is False
        assert config.system.langsmith_project == "s-style-parser"
        assert config.system.session_history_limit == 100

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("S_STYLE_TRACE", "yes")
        monkeypatch.setenv("S_STYLE_TRACE_FILE", "out.jsonl")
        monkeypatch.setenv("DEBUG", "1")
        monkeypatch.setenv("LANGSMITH_PROJECT", "parser-dev")
        monkeypatch.setenv("S_STYLE_HISTORY_LIMIT", "5")

        config = Settings()
        assert config.parser.trace_enabled is True
        assert config.parser.trace_file == "out.jsonl"
        assert config.system.debug is True
        assert config.system.langsmith_project == "parser-dev"
        assert config.system.session_history_limit == 5

    def test_false_flag(self, monkeypatch):
        monkeypatch.setenv("S_STYLE_TRACE", "off")
        assert Settings().parser.trace_enabled is False

    def test_reload(self, monkeypatch):
        config = Settings()
        monkeypatch.setenv("DEBUG", "true")
        config.reload()
        assert config.system.debug is True

    def test_system_config_model(self):
        assert SystemConfig(debug=True).debug is True


class TestParseResponse:
    """レスポンス構築のテスト"""

    def test_success(self):
        response = build_parse_response(ParseRequest(expression="(+ 2 3)"))
        assert response.success is True
        assert response.tree == ["+", 2.0, 3.0]
        assert response.kind == "list"
        assert response.error is None

    def test_unexpected_closing(self):
        response = build_parse_response(ParseRequest(expression="(+ 1 2 ))"))
        assert response.success is False
        assert response.tree is None
        assert response.error_kind == "UnexpectedClosingParenthesis"
        assert response.token_index == 5

    def test_no_closing(self):
        response = build_parse_response(ParseRequest(expression="(= 2 3"))
        assert response.success is False
        assert response.error_kind == "NoClosingParenthesis"

    def test_with_tracer(self):
        tracer = TraceLogger()
        build_parse_response(ParseRequest(expression="(a)"), tracer)
        assert len(tracer.entries) == 2

    def test_json_round_trip(self):
        response = build_parse_response(ParseRequest(expression="(if true (x 1.5))"))
        data = json.loads(response.model_dump_json())
        assert data["tree"] == ["if", True, ["x", 1.5]]
        assert ParseResponse.model_validate(data).kind == "list"

    def test_tokenize(self):
        response = build_tokenize_response(ParseRequest(expression="(a (b))"))
        assert response.tokens == ["(", "a", "(", "b", ")", ")"]
        assert response.count == 6


class TestSpecialFloatSerialization:
    """inf / nan の JSON 出力"""

    def test_inf_and_nan_are_not_null(self):
        response = build_parse_response(ParseRequest(expression="(a inf nan -inf 1)"))
        text = response.model_dump_json()
        assert "null" not in text
        assert "Infinity" in text
        data = json.loads(text)
        assert data["tree"][1] == math.inf
        assert math.isnan(data["tree"][2])
        assert data["tree"][3] == -math.inf
        assert data["tree"][4] == 1.0

"""
設定管理

パーサーとシステムの設定

環境変数による設定例:
# パースのトレースをJSON-Lファイルに記録
export S_STYLE_TRACE="true"
export S_STYLE_TRACE_FILE="parse_trace.jsonl"

# LangSmith プロジェクト
export LANGSMITH_PROJECT="s-style-parser"
"""

import os
from typing import Optional
from pydantic import BaseModel


class ParserConfig(BaseModel):
    """パーサー設定"""
    trace_enabled: bool = False
    trace_file: Optional[str] = None


class SystemConfig(BaseModel):
    """システム設定"""
    debug: bool = False
    langsmith_project: str = "s-style-parser"
    session_history_limit: int = 100


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


class Settings:
    """設定管理クラス"""

    def __init__(self):
        self.parser = ParserConfig()
        self.system = SystemConfig()

        # 環境変数から設定を読み込み
        self._load_from_env()

    def _load_from_env(self):
        """環境変数から設定を読み込み"""
        # パーサー設定
        if os.getenv("S_STYLE_TRACE"):
            self.parser.trace_enabled = _env_flag(os.getenv("S_STYLE_TRACE"))
        if os.getenv("S_STYLE_TRACE_FILE"):
            self.parser.trace_file = os.getenv("S_STYLE_TRACE_FILE")

        # システム設定
        if os.getenv("DEBUG"):
            self.system.debug = _env_flag(os.getenv("DEBUG"))
        if os.getenv("LANGSMITH_PROJECT"):
            self.system.langsmith_project = os.getenv("LANGSMITH_PROJECT")
        if os.getenv("S_STYLE_HISTORY_LIMIT"):
            self.system.session_history_limit = int(os.getenv("S_STYLE_HISTORY_LIMIT"))

    def reload(self):
        """既定値に戻して環境変数を読み直す"""
        self.__init__()


# グローバル設定インスタンス
settings = Settings()

"""
パース結果のPydanticモデル定義
"""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..core.parser import ParseError, parse_source
from ..core.tokenizer import split_source
from ..core.trace_logger import TraceLogger


class ParseRequest(BaseModel):
    """S式パースリクエスト"""
    expression: str = Field(..., description="パースするS式")


class ParseResponse(BaseModel):
    """S式パースレスポンス"""
    # inf / nan の数値を null にせず Infinity / NaN として出力する
    model_config = ConfigDict(ser_json_inf_nan="constants")

    success: bool = Field(..., description="パース成功フラグ")
    tree: Any = Field(None, description="パース結果（リスト・文字列・数値・真偽値）")
    kind: Optional[str] = Field(None, description="ルートノード種別")
    error: Optional[str] = Field(None, description="エラーメッセージ")
    error_kind: Optional[str] = Field(None, description="エラー種別")
    token_index: Optional[int] = Field(None, description="エラー位置のトークン番号")


class TokenizeResponse(BaseModel):
    """トークン化レスポンス"""
    tokens: List[str] = Field(..., description="トークン一覧")
    count: int = Field(..., description="トークン数")


def build_parse_response(request: ParseRequest, tracer: Optional[TraceLogger] = None) -> ParseResponse:
    """リクエストをパースしてレスポンスを構築"""
    try:
        node = parse_source(request.expression, tracer)
    except ParseError as e:
        return ParseResponse(
            success=False,
            error=e.message,
            error_kind=e.kind.value,
            token_index=e.token_index
        )
    return ParseResponse(success=True, tree=node.to_data(), kind=node.kind.value)


def build_tokenize_response(request: ParseRequest) -> TokenizeResponse:
    """リクエストをトークン化してレスポンスを構築"""
    tokens = split_source(request.expression)
    return TokenizeResponse(tokens=tokens, count=len(tokens))

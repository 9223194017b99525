"""
S式パーサー - 再帰下降実装

トークン列から List / Symbol / Number / Bool の木を構築する。
失敗時は部分的に構築した木を呼び出し元に返さず、例外として伝播する。
"""

import re
from enum import Enum
from typing import List, Optional

from langchain_core.runnables import RunnableLambda
from langsmith import traceable

from .nodes import BoolNode, ListNode, Node, NumberNode, SymbolNode
from .tokenizer import Token, TokenIterator, tokenize
from .trace_logger import TraceLogger, get_global_logger
from ..config.settings import settings

OPEN_PAREN = "("
CLOSE_PAREN = ")"

# 符号付き10進数・指数表記と inf / infinity / nan
NUMBER_PATTERN = re.compile(
    r'[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)',
    re.IGNORECASE
)


class ParseErrorKind(Enum):
    """パースエラー種別"""
    UNEXPECTED_CLOSING_PARENTHESIS = "UnexpectedClosingParenthesis"
    NO_CLOSING_PARENTHESIS = "NoClosingParenthesis"


class ParseError(Exception):
    """S式パースエラー"""
    kind: ParseErrorKind

    def __init__(self, message: str, token_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.token_index = token_index


class UnexpectedClosingParenthesisError(ParseError):
    """対応しない閉じ括弧、または式の後に残ったトークン"""
    kind = ParseErrorKind.UNEXPECTED_CLOSING_PARENTHESIS


class NoClosingParenthesisError(ParseError):
    """閉じ括弧が現れる前にトークンが尽きた"""
    kind = ParseErrorKind.NO_CLOSING_PARENTHESIS


def _position(tokens) -> Optional[int]:
    return getattr(tokens, "position", None)


def parse(tokens, tracer: Optional[TraceLogger] = None) -> Node:
    """トークン列からちょうど1つの式をパースしてルートノードを返す

    Args:
        tokens: peek()/next() を持つトークンストリーム
        tracer: パース過程を記録するトレースロガー

    Returns:
        ルートノード

    Raises:
        UnexpectedClosingParenthesisError: 式の後にトークンが残っている場合
        NoClosingParenthesisError: 閉じ括弧が見つからない場合
        RecursionError: ネストが深すぎる場合

    1段のネストにつき2フレームを使うため、扱える深さはおよそ
    sys.getrecursionlimit() の半分（既定の1000なら約480段）まで。
    """
    node = parse_expression(tokens, tracer)

    stray = tokens.peek()
    if stray is not None:
        error = UnexpectedClosingParenthesisError(
            f"Unexpected token after expression: {stray.src!r}", _position(tokens)
        )
        if tracer:
            tracer.log_error("parse", stray.src, error)
        raise error

    return node


def parse_expression(tokens, tracer: Optional[TraceLogger] = None) -> Node:
    """トークンを1つ消費し、リストかアトムとしてパース"""
    index = _position(tokens)
    token = tokens.next()
    if token is None:
        error = NoClosingParenthesisError("Unexpected end of input", index)
        if tracer:
            tracer.log_error("expression", None, error)
        raise error

    if token.src == OPEN_PAREN:
        return parse_list(tokens, tracer, index)
    if token.src == CLOSE_PAREN:
        # 式の先頭の ')' はシンボルにせずエラーとする
        error = UnexpectedClosingParenthesisError("Unexpected ')'", index)
        if tracer:
            tracer.log_error("expression", token.src, error)
        raise error

    node = parse_atom(token)
    if tracer:
        entry_id = tracer.start_operation("atom", token.src, index)
        tracer.end_operation(entry_id, node.to_data(), node.kind.value)
    return node


def parse_list(tokens, tracer: Optional[TraceLogger] = None,
               start_index: Optional[int] = None) -> ListNode:
    """開き括弧の直後から対応する ')' までをパースして ListNode を返す

    start_index は開き括弧のトークン位置（エラー報告用）。
    """
    entry_id = tracer.start_operation("list", OPEN_PAREN, start_index) if tracer else None
    items: List[Node] = []

    try:
        while True:
            token = tokens.peek()
            if token is None:
                # ')' を見つけた時点で return するので、ここに来たら閉じ括弧がない
                raise NoClosingParenthesisError(
                    f"No closing parenthesis for list opened at token {start_index}",
                    start_index
                )
            if token.src == CLOSE_PAREN:
                tokens.next()
                node = ListNode(tuple(items))
                if tracer:
                    tracer.end_operation(entry_id, f"<list of {len(items)}>", node.kind.value)
                return node

            if tracer:
                tracer.push_path(len(items))
            try:
                items.append(parse_expression(tokens, tracer))
            finally:
                if tracer:
                    tracer.pop_path()
    except ParseError as e:
        if tracer:
            tracer.log_error("list", OPEN_PAREN, e, entry_id)
        raise


def parse_atom(token: Token) -> Node:
    """アトムを分類する

    優先順位:
    1. true / false なら Bool
    2. 数値として解釈できれば Number
    3. それ以外は Symbol
    """
    text = token.src
    if text == "true":
        return BoolNode(True)
    if text == "false":
        return BoolNode(False)
    if NUMBER_PATTERN.fullmatch(text):
        return NumberNode(float(text))
    return SymbolNode(str(text))


@traceable(name="parse_source", project_name=settings.system.langsmith_project)
def parse_source(source: str, tracer: Optional[TraceLogger] = None) -> Node:
    """ソース文字列をトークン化してパース"""
    if tracer is None and settings.parser.trace_enabled:
        tracer = get_global_logger()
    return parse(tokenize(source), tracer)


def parse_tokens(texts: List[str], tracer: Optional[TraceLogger] = None) -> Node:
    """トークン文字列のリストから直接パース"""
    return parse(TokenIterator(Token(text) for text in texts), tracer)


# Langchain Runnable として公開
parser_runnable = RunnableLambda(parse_source)

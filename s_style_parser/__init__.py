"""
S式パーサー

括弧で構造化されたLisp風の言語を List / Symbol / Number / Bool の木に変換します。
"""

from .core.nodes import BoolNode, ListNode, Node, NodeKind, NumberNode, SymbolNode
from .core.parser import (
    NoClosingParenthesisError,
    ParseError,
    ParseErrorKind,
    UnexpectedClosingParenthesisError,
    parse,
    parse_source,
)
from .core.tokenizer import Token, TokenIterator, tokenize

__version__ = "0.1.0"

__all__ = [
    "BoolNode",
    "ListNode",
    "Node",
    "NodeKind",
    "NumberNode",
    "SymbolNode",
    "NoClosingParenthesisError",
    "ParseError",
    "ParseErrorKind",
    "UnexpectedClosingParenthesisError",
    "parse",
    "parse_source",
    "Token",
    "TokenIterator",
    "tokenize",
]

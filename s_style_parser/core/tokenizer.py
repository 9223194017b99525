"""
S式トークナイザー

ソース文字列をトークン列に分割し、peek/next で読み進めるイテレータを提供します。
トークンは元のソーステキストのみを保持し、種別の判定はパーサー側で行います。
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from langsmith import traceable

from ..config.settings import settings

# 括弧と、空白・括弧以外の連続を1トークンとする
TOKEN_PATTERN = re.compile(r'\(|\)|[^\s()]+')


@dataclass(frozen=True)
class Token:
    """トークン（元のソーステキストのみ）"""
    src: str

    def __str__(self) -> str:
        return self.src


class TokenIterator:
    """トークン列の読み出し位置を管理するイテレータ

    消費によって位置が進むため、複数のパース処理から同時に使用しないこと。
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: List[Token] = list(tokens)
        self.position = 0

    def peek(self) -> Optional[Token]:
        """次のトークンを消費せずに返す"""
        if self.position < len(self._tokens):
            return self._tokens[self.position]
        return None

    def next(self) -> Optional[Token]:
        """次のトークンを消費して返す（終端ならNone）"""
        token = self.peek()
        if token is not None:
            self.position += 1
        return token

    def remaining(self) -> List[Token]:
        """未消費のトークン一覧"""
        return self._tokens[self.position:]

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        token = self.next()
        if token is None:
            raise StopIteration
        return token

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self):
        return f"TokenIterator({self.position}/{len(self._tokens)})"


def split_source(source: str) -> List[str]:
    """ソース文字列をトークン文字列のリストに分割"""
    return TOKEN_PATTERN.findall(source)


@traceable(name="tokenize_source", project_name=settings.system.langsmith_project)
def tokenize(source: str) -> TokenIterator:
    """ソース文字列をトークンイテレータに変換"""
    return TokenIterator(Token(text) for text in split_source(source))

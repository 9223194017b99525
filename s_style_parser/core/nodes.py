"""
AST ノード定義

パース結果の木を構成する4種類のノード（List / Symbol / Number / Bool）。
ノードは生成後に変更できず、List は子ノードをタプルとして保持します。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Tuple, Union


class NodeKind(Enum):
    """ノード種別"""
    LIST = "list"
    SYMBOL = "symbol"
    NUMBER = "number"
    BOOL = "bool"


@dataclass(frozen=True)
class ListNode:
    """括弧で囲まれたグループ"""
    items: Tuple["Node", ...] = ()

    @property
    def kind(self) -> NodeKind:
        return NodeKind.LIST

    def to_data(self) -> list:
        return [item.to_data() for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)

    def __repr__(self):
        return f"List({', '.join(repr(item) for item in self.items)})"


@dataclass(frozen=True)
class SymbolNode:
    """識別子アトム"""
    name: str

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SYMBOL

    def to_data(self) -> str:
        return self.name

    def __repr__(self):
        return f"Symbol({self.name!r})"


@dataclass(frozen=True)
class NumberNode:
    """数値リテラル（64bit浮動小数点）"""
    value: float

    @property
    def kind(self) -> NodeKind:
        return NodeKind.NUMBER

    def to_data(self) -> float:
        return self.value

    def __repr__(self):
        return f"Number({self.value!r})"


@dataclass(frozen=True)
class BoolNode:
    """真偽値リテラル true / false"""
    value: bool

    @property
    def kind(self) -> NodeKind:
        return NodeKind.BOOL

    def to_data(self) -> bool:
        return self.value

    def __repr__(self):
        return f"Bool({'true' if self.value else 'false'})"


Node = Union[ListNode, SymbolNode, NumberNode, BoolNode]


def count_nodes(node: Any) -> int:
    """部分木に含まれるノード数を数える"""
    if isinstance(node, ListNode):
        return 1 + sum(count_nodes(child) for child in node.items)
    return 1


def tree_depth(node: Any) -> int:
    """部分木の深さ（アトムは0）"""
    if isinstance(node, ListNode):
        return 1 + max((tree_depth(child) for child in node.items), default=0)
    return 0

"""
S式パースのトレースログ機能

JSON-L形式でのパース過程ログ出力とメタデータ収集を提供します。
"""

import json
import time
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, asdict, field
from enum import Enum
from pathlib import Path


class EntryStatus(Enum):
    """エントリの状態"""
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ParseMetadata:
    """パースメタデータ"""
    node_kind: Optional[str] = None       # 生成されたノード種別
    token_index: Optional[int] = None     # 入力トークンの位置
    error: Optional[str] = None
    error_kind: Optional[str] = None
    status: EntryStatus = EntryStatus.STARTED

    # 階層構造メタデータ
    depth: int = 0
    parent_path: Optional[List[int]] = None
    has_children: bool = False
    child_count: int = 0


@dataclass
class TraceEntry:
    """トレースログエントリ"""
    timestamp: str
    operation: str
    path: List[int]  # 木の中での位置パス
    input: Any
    output: Any
    duration_ms: float
    metadata: ParseMetadata = field(default_factory=ParseMetadata)

    def to_json_line(self) -> str:
        """JSON-L形式で出力"""
        data = asdict(self)
        data['metadata']['status'] = data['metadata']['status'].value
        return json.dumps(data, ensure_ascii=False, separators=(',', ':'))


class TraceLogger:
    """S式パースのトレースロガー"""

    def __init__(self, output_file: Optional[Path] = None):
        self.output_file = output_file
        self.entries: List[TraceEntry] = []
        self.current_path: List[int] = []
        self._started_at: Dict[int, float] = {}

    def start_operation(self, operation: str, input_data: Any,
                        token_index: Optional[int] = None) -> int:
        """操作開始をログ"""
        entry_id = len(self.entries)
        entry = TraceEntry(
            timestamp=self._current_timestamp(),
            operation=operation,
            path=self.current_path.copy(),
            input=input_data,
            output=None,
            duration_ms=0,
            metadata=ParseMetadata(token_index=token_index)
        )
        self.entries.append(entry)
        self._started_at[entry_id] = time.perf_counter()
        return entry_id

    def end_operation(self, entry_id: int, output: Any, node_kind: Optional[str] = None):
        """操作終了とログ出力"""
        if entry_id >= len(self.entries):
            return

        entry = self.entries[entry_id]
        started = self._started_at.pop(entry_id, None)
        if started is not None:
            entry.duration_ms = (time.perf_counter() - started) * 1000
        entry.output = output
        entry.metadata.node_kind = node_kind
        entry.metadata.status = EntryStatus.COMPLETED

        if self.output_file:
            self._write_to_file(entry)

    def log_error(self, operation: str, input_data: Any, error: Exception,
                  entry_id: Optional[int] = None):
        """エラーログ

        entry_id を渡した場合は開始済みエントリを失敗として閉じる。
        """
        if entry_id is not None and entry_id < len(self.entries):
            entry = self.entries[entry_id]
            started = self._started_at.pop(entry_id, None)
            if started is not None:
                entry.duration_ms = (time.perf_counter() - started) * 1000
        else:
            entry = TraceEntry(
                timestamp=self._current_timestamp(),
                operation=operation,
                path=self.current_path.copy(),
                input=input_data,
                output=None,
                duration_ms=0
            )
            self.entries.append(entry)

        entry.metadata.error = str(error)
        entry.metadata.error_kind = getattr(getattr(error, 'kind', None), 'value', type(error).__name__)
        entry.metadata.status = EntryStatus.FAILED

        if self.output_file:
            self._write_to_file(entry)

    def push_path(self, index: int):
        """パスに要素を追加（子ノードに入る）"""
        self.current_path.append(index)

    def pop_path(self):
        """パスから要素を削除（親ノードに戻る）"""
        if self.current_path:
            self.current_path.pop()

    def get_recent_entries(self, count: int = 10) -> List[TraceEntry]:
        """最近のエントリを取得"""
        return self.entries[-count:]

    def get_errors(self) -> List[TraceEntry]:
        """失敗したエントリを取得"""
        return [e for e in self.entries if e.metadata.status is EntryStatus.FAILED]

    def clear(self):
        """ログをクリア"""
        self.entries.clear()
        self.current_path.clear()
        self._started_at.clear()

    def _current_timestamp(self) -> str:
        """現在のタイムスタンプを取得"""
        now = time.time()
        millis = int((now - int(now)) * 1000)
        return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(now)) + f".{millis:03d}Z"

    def _write_to_file(self, entry: TraceEntry):
        """ファイルに書き込み"""
        try:
            with open(self.output_file, 'a', encoding='utf-8') as f:
                f.write(entry.to_json_line() + '\n')
        except OSError as e:
            print(f"ログ書き込みエラー: {e}")

    def analyze_tree_structure(self) -> None:
        """エントリ全体の階層構造を分析してメタデータを更新"""
        for entry in self.entries:
            entry.metadata.depth = len(entry.path)
            if entry.path:
                entry.metadata.parent_path = entry.path[:-1]
            children = self._find_child_entries(entry)
            entry.metadata.has_children = len(children) > 0
            entry.metadata.child_count = len(children)

    def _find_child_entries(self, parent_entry: TraceEntry) -> List[TraceEntry]:
        """指定エントリの直接の子エントリを検索"""
        if parent_entry.operation != "list":
            return []
        parent_path_len = len(parent_entry.path)
        # 子ノードの条件: パスの長さが親+1で、先頭部分が親パスと一致
        return [
            entry for entry in self.entries
            if len(entry.path) == parent_path_len + 1
            and entry.path[:parent_path_len] == parent_entry.path
            and entry.metadata.status is not EntryStatus.FAILED
        ]

    def get_tree_summary(self) -> Dict[str, Any]:
        """ツリー構造のサマリーを取得"""
        self.analyze_tree_structure()

        depth_stats: Dict[int, int] = {}
        for entry in self.entries:
            depth = entry.metadata.depth
            depth_stats[depth] = depth_stats.get(depth, 0) + 1

        return {
            "total_operations": len(self.entries),
            "total_duration_ms": sum(e.duration_ms for e in self.entries if e.duration_ms > 0),
            "max_depth": max(depth_stats.keys()) if depth_stats else 0,
            "depth_statistics": depth_stats,
            "errors": len(self.get_errors()),
        }


# グローバルロガーインスタンス
_global_logger: Optional[TraceLogger] = None


def get_global_logger() -> TraceLogger:
    """グローバルロガーを取得"""
    global _global_logger
    if _global_logger is None:
        _global_logger = TraceLogger()
    return _global_logger


def set_global_logger(logger: TraceLogger):
    """グローバルロガーを設定"""
    global _global_logger
    _global_logger = logger


def configure_trace_logging(output_file: Optional[Union[str, Path]] = None) -> TraceLogger:
    """トレースログを設定"""
    output_path = Path(output_file) if output_file else None
    logger = TraceLogger(output_path)
    set_global_logger(logger)
    return logger

"""
メインCLIインターフェース

S式のトークン化・パース結果をツリー表示するCLI
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from ..api.models import ParseRequest, build_parse_response, build_tokenize_response
from ..config.settings import settings
from ..core.nodes import ListNode, Node, count_nodes, tree_depth
from ..core.parser import ParseError, parse_source
from ..core.tokenizer import split_source
from ..core.trace_logger import TraceLogger, configure_trace_logging


def render_tree(node: Node) -> Tree:
    """ノードをrichのTreeに変換"""
    if isinstance(node, ListNode):
        tree = Tree(_list_label(node))
        for child in node:
            _add_branch(tree, child)
        return tree
    return Tree(_atom_label(node))


def _add_branch(tree: Tree, node: Node):
    if isinstance(node, ListNode):
        branch = tree.add(_list_label(node))
        for child in node:
            _add_branch(branch, child)
    else:
        tree.add(_atom_label(node))


ATOM_STYLES = {
    "symbol": "cyan",
    "number": "magenta",
    "bool": "green",
}


def _list_label(node: ListNode) -> Text:
    return Text.assemble(("List", "bold"), f" ({len(node)})")


def _atom_label(node: Node) -> Text:
    # シンボル名に [ ] が含まれてもマークアップとして解釈させない
    return Text(repr(node), style=ATOM_STYLES[node.kind.value])


class SStyleParserCLI:
    """S式パーサーCLI"""

    def __init__(self, console: Optional[Console] = None, tracer: Optional[TraceLogger] = None,
                 input_func: Callable[[str], str] = input):
        self.console = console or Console()
        self.tracer = tracer
        self.input_func = input_func
        self.session_history: List[Dict[str, Any]] = []

    def print_banner(self):
        self.console.print("S式パーサーへようこそ！")
        self.console.print("利用可能コマンド: /help, /parse, /tokens, /history, /trace, /exit")

    def print_help(self):
        """ヘルプを表示"""
        self.console.print("""
S式パーサー ヘルプ

■ コマンド一覧
/help      - このヘルプを表示
/parse     - S式をパースしてツリー表示（/parse (+ 1 2) のように引数も可）
/tokens    - トークン一覧を表示
/history   - セッション履歴を表示
/trace     - トレースログのサマリーを表示
/exit      - 終了

コマンドなしで入力した行はそのままパースされます。

■ アトムの分類（優先順）
true / false  - Bool
1, -2.5, 1e3  - Number
それ以外      - Symbol
""", markup=False)

    def parse_safe(self, s_expr: str) -> Tuple[bool, Optional[Node], str]:
        """S式を安全にパース"""
        try:
            node = parse_source(s_expr, self.tracer)
            return True, node, ""
        except ParseError as e:
            if settings.system.debug:
                self.console.print_exception()
            return False, None, f"{e.kind.value}: {e.message}"

    def parse_and_show(self, s_expr: str) -> bool:
        """パースして結果を表示し、履歴に記録"""
        success, node, error = self.parse_safe(s_expr)
        entry: Dict[str, Any] = {"input": s_expr, "timestamp": time.time()}
        if success:
            entry["result"] = repr(node)
            self.console.print(render_tree(node))
            self.console.print(f"ノード数: {count_nodes(node)}, 深さ: {tree_depth(node)}", markup=False)
        else:
            entry["error"] = error
            self.console.print(f"パースエラー: {error}", style="red", markup=False)
        self._record(entry)
        return success

    def show_tokens(self, s_expr: str):
        """トークン一覧を表示"""
        tokens = split_source(s_expr)
        self.console.print(f"{len(tokens)} tokens: " + " ".join(repr(t) for t in tokens), markup=False)

    def show_history(self):
        """セッション履歴を表示"""
        if not self.session_history:
            self.console.print("履歴がありません。")
            return

        self.console.print("\n=== セッション履歴 ===")
        for i, entry in enumerate(self.session_history[-10:], 1):  # 最新10件
            self.console.print(f"\n{i}. S式: {entry['input']}", markup=False)
            if 'result' in entry:
                self.console.print(f"   結果: {entry['result']}", markup=False)
            if 'error' in entry:
                self.console.print(f"   エラー: {entry['error']}", markup=False)

    def show_trace(self):
        """トレースログのサマリーを表示"""
        if self.tracer is None:
            self.console.print("トレースは無効です（--trace で有効化）。")
            return
        summary = self.tracer.get_tree_summary()
        self.console.print(
            f"操作数: {summary['total_operations']}, 最大深度: {summary['max_depth']}, "
            f"エラー: {summary['errors']}"
        )

    def _record(self, entry: Dict[str, Any]):
        self.session_history.append(entry)
        limit = settings.system.session_history_limit
        if limit <= 0:
            self.session_history.clear()
        elif len(self.session_history) > limit:
            self.session_history = self.session_history[-limit:]

    def handle_line(self, user_input: str) -> bool:
        """1行を処理する（終了時はFalse）"""
        user_input = user_input.strip()
        if not user_input:
            return True

        if not user_input.startswith("/"):
            self.parse_and_show(user_input)
            return True

        command, _, argument = user_input[1:].partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command == "help":
            self.print_help()
        elif command == "exit":
            self.console.print("S式パーサーを終了します。")
            return False
        elif command == "history":
            self.show_history()
        elif command == "trace":
            self.show_trace()
        elif command in ("parse", "tokens"):
            if not argument:
                argument = self.input_func("S式を入力してください: ").strip()
            if argument:
                if command == "parse":
                    self.parse_and_show(argument)
                else:
                    self.show_tokens(argument)
        else:
            self.console.print(f"不明なコマンド: {command}", markup=False)
            self.console.print("利用可能コマンド: /help, /parse, /tokens, /history, /trace, /exit")
        return True

    def run(self):
        """メインループ"""
        self.print_banner()
        while True:
            try:
                if not self.handle_line(self.input_func("\n> ")):
                    break
            except (KeyboardInterrupt, EOFError):
                self.console.print("\nS式パーサーを終了します。")
                break


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """コマンドライン引数を解析"""
    parser = argparse.ArgumentParser(
        prog='s-style-parser',
        description='S式パーサー',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用例:
  s-style-parser                          # 対話モードで起動
  s-style-parser --expr "(+ 2 3)"         # 1式をパースしてツリー表示
  s-style-parser --file prog.lisp --json  # ファイルをパースしてJSON出力
  s-style-parser --expr "(a b)" --tokens  # トークン一覧を表示
        """
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--expr', help='パースするS式')
    source.add_argument('--file', type=Path, help='S式を含むファイル')
    parser.add_argument('--json', action='store_true', help='結果をJSONで出力')
    parser.add_argument('--tokens', action='store_true', help='トークン一覧を出力')
    parser.add_argument('--trace', metavar='FILE', default=settings.parser.trace_file,
                        help='パースのトレースをJSON-Lファイルに記録')
    parser.add_argument('--repl', action='store_true', help='対話モードで起動（入力なし時の既定）')
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """CLIエントリーポイント"""
    args = parse_arguments(argv)
    console = console or Console()

    tracer = None
    if args.trace or settings.parser.trace_enabled:
        tracer = configure_trace_logging(args.trace)

    cli = SStyleParserCLI(console=console, tracer=tracer)

    if args.expr is None and args.file is None:
        cli.run()
        return 0

    if args.file is not None:
        try:
            s_expr = args.file.read_text(encoding='utf-8')
        except OSError as e:
            console.print(f"ファイル読み込みエラー: {e}", style="red", markup=False)
            return 1
    else:
        s_expr = args.expr

    request = ParseRequest(expression=s_expr)

    if args.tokens:
        response = build_tokenize_response(request)
        if args.json:
            console.print_json(response.model_dump_json())
        else:
            cli.show_tokens(s_expr)
        return 0

    if args.json:
        response = build_parse_response(request, tracer)
        console.print_json(response.model_dump_json())
        return 0 if response.success else 1

    ok = cli.parse_and_show(s_expr)
    if args.repl:
        cli.run()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(run())

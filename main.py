#!/usr/bin/env python3
"""
S式パーサー - メインエントリーポイント

起動オプション:
  (引数なし)      : 対話モード
  --expr TEXT     : 1式をパースしてツリー表示
  --file PATH     : ファイルをパース
  --json          : 結果をJSONで出力
  --tokens        : トークン一覧を出力
  --trace FILE    : パースのトレースをJSON-Lファイルに記録
  --help          : ヘルプ表示
"""

import sys

from s_style_parser.cli.main import run

if __name__ == "__main__":
    sys.exit(run())

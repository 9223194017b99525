"""
S式パーサー - コアモジュール

トークナイザー、ASTノード、再帰下降パーサー、トレースログ
"""

"""
Core domain models, errors, and governance primitives.

Модуль не зависит от внешних коллабораторов (asset ledger, reserve, registry).
"""

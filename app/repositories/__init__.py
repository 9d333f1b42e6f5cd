"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
Repositories hold pure database operations; services own the transaction
and decide what a result means.
"""

"""
Integration tests package.

Tests de integración que verifican sobre SQLite en memoria (aiosqlite):
- Repositorios SQLAlchemy (escrituras condicionales, SAVEPOINT, rollback)
- Flujo completo del ledger: contador, outbox e idempotencia en una transacción
- Ciclo del outbox y reintento manual

Para ejecutar solo tests de integración:
    pytest tests/integration/
"""

from ringcheck.infrastructure.inmemory.ledger import InMemoryLedger, InMemoryTokenRegistry, SettlementExecutor

__all__ = ["InMemoryLedger", "InMemoryTokenRegistry", "SettlementExecutor"]

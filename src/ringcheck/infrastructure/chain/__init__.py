from ringcheck.infrastructure.chain.ledger import Web3Ledger, Web3TokenRegistry, connect

__all__ = ["Web3Ledger", "Web3TokenRegistry", "connect"]

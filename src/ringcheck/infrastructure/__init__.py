"""Infrastructure adapters: configuration, logging, ledgers and payload codecs."""

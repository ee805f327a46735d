"""Built-in scenario set (``default.json``), loaded through ``ringcheck.infrastructure.scenarios``."""

from ringcheck.presentation.cli.main import app, cli

__all__ = ["app", "cli"]

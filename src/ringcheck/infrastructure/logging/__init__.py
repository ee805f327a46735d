from ringcheck.infrastructure.logging.config import configure_logging, get_logger, scenario_context

__all__ = ["configure_logging", "get_logger", "scenario_context"]

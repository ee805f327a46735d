from ringcheck.infrastructure.config.settings import (
    BaseAppSettings,
    ProdSettings,
    TestSettings,
    get_settings,
)

__all__ = ["BaseAppSettings", "ProdSettings", "TestSettings", "get_settings"]

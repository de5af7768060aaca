from config.settings import settings, IS_PRODUCTION

__all__ = ["settings", "IS_PRODUCTION"]

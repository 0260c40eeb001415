from .settings import HalSettings

__all__ = ["HalSettings"]

from .registry import WhitelistRegistry

__all__ = ["WhitelistRegistry"]

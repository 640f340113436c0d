from .engine import WhitelistEngine, create_whitelist_engine

__all__ = ["WhitelistEngine", "create_whitelist_engine"]

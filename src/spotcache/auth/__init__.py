from .token_manager import TokenManager, TokenState

__all__ = ["TokenManager", "TokenState"]

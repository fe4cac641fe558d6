"""Token sandboxing and limits primitives."""

from .policy import PolicyBlockedError, SecurityLimits, enforce_list_limit
from .tokens import TokenBlockedError, resolve_token_path, token_shards, validate_token

__all__ = [
    "PolicyBlockedError",
    "SecurityLimits",
    "TokenBlockedError",
    "enforce_list_limit",
    "resolve_token_path",
    "token_shards",
    "validate_token",
]

from fancy_todo.services.tokens.dto import TokenConfig, TokenPair, TokenPurpose
from fancy_todo.services.tokens.service import TokenService, identity_claims

__all__ = ["TokenConfig", "TokenPair", "TokenPurpose", "TokenService", "identity_claims"]

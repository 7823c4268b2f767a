"""Battle.net upstream access: tokens, retries and the JSON client."""

from armory.services.battlenet.client import BattleNetClient, build_url
from armory.services.battlenet.retry import RetryDecision, RetryPolicy, run_with_retry
from armory.services.battlenet.session import HttpSessionManager
from armory.services.battlenet.tokens import AccessToken, TokenManager

__all__ = [
    "AccessToken",
    "BattleNetClient",
    "HttpSessionManager",
    "RetryDecision",
    "RetryPolicy",
    "TokenManager",
    "build_url",
    "run_with_retry",
]

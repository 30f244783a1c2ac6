"""External integrations: Stripe and the session store."""
from .session_store import SessionStore
from .stripe_client import RemoteCallError, RemoteErrorType, StripeClient, StripeClientFactory

__all__ = [
    "RemoteCallError",
    "RemoteErrorType",
    "SessionStore",
    "StripeClient",
    "StripeClientFactory",
]

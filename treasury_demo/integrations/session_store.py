"""
Redis-backed session store.

Sessions are written by the login flow as JSON documents keyed by the
session cookie value. Handlers only read them.
"""
import json
from typing import Optional

import redis.asyncio as aioredis
import structlog
from pydantic import ValidationError as PydanticValidationError

from treasury_demo.core.exceptions import SessionError
from treasury_demo.core.models import Session

logger = structlog.get_logger(__name__)


class SessionStore:
    """Reads and writes demo sessions in Redis."""

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "session:",
        ttl: int = 86400,
        redis_client: Optional[aioredis.Redis] = None,
    ):
        """
        Initialize session store.

        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix of session keys
            ttl: Session lifetime in seconds
            redis_client: Optional Redis client (creates one if not provided)
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.ttl = ttl
        self.redis_client = redis_client

    async def _ensure_redis(self) -> aioredis.Redis:
        """Ensure Redis client is initialized."""
        if self.redis_client is None:
            self.redis_client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self.redis_client

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def get(self, session_id: Optional[str]) -> Session:
        """
        Load the session with the given id.

        Raises:
            SessionError: If the id is missing, unknown or the stored
                document is not a valid session
        """
        if not session_id:
            raise SessionError("No session")

        redis_client = await self._ensure_redis()
        raw = await redis_client.get(self._key(session_id))
        if raw is None:
            logger.warning("session_not_found")
            raise SessionError("Session expired or not found")

        try:
            return Session.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error("session_corrupt", error=str(e))
            raise SessionError("Invalid session") from e

    async def save(self, session_id: str, session: Session) -> None:
        """Store a session, resetting its TTL."""
        redis_client = await self._ensure_redis()
        await redis_client.set(
            self._key(session_id),
            session.model_dump_json(by_alias=True),
            ex=self.ttl,
        )
        logger.info("session_saved", account_id=session.stripe_account.account_id)

    async def delete(self, session_id: str) -> None:
        redis_client = await self._ensure_redis()
        await redis_client.delete(self._key(session_id))

    async def ping(self) -> bool:
        redis_client = await self._ensure_redis()
        return bool(await redis_client.ping())

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()
            self.redis_client = None

"""
Health checks for liveness/readiness probes.

Checks:
- Redis connectivity (session store)
"""
from typing import TYPE_CHECKING, Any, Dict

import structlog

if TYPE_CHECKING:
    from treasury_demo.integrations.session_store import SessionStore

logger = structlog.get_logger(__name__)


class HealthCheck:
    """Health check service for the demo backend's dependencies."""

    def __init__(self, session_store: "SessionStore") -> None:
        self.session_store = session_store

    async def check_redis(self) -> Dict[str, Any]:
        """
        Check Redis connectivity.

        Returns:
            Dict[str, Any]: Redis health status
        """
        try:
            await self.session_store.ping()
            return {"status": "healthy", "service": "redis"}
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {"status": "unhealthy", "service": "redis", "error": str(e)}

    async def liveness(self) -> Dict[str, Any]:
        """Process is up."""
        return {"status": "healthy", "message": "Application is running"}

    async def readiness(self) -> Dict[str, Any]:
        """
        Ready to serve requests.

        Sessions live in Redis, so no request can be served without it.
        """
        redis_check = await self.check_redis()
        return {"status": redis_check["status"], "checks": {"redis": redis_check}}

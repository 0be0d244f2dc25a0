from __future__ import annotations

import aioboto3
import structlog

from privlink.core.errors import ActionCallError

logger = structlog.get_logger()


def _sanitize_secret_id(secret_id: str) -> str:
    """Mask a secret id for logging, keeping only a short prefix."""
    if len(secret_id) <= 3:
        return "***"
    if "/" in secret_id:
        return f"{secret_id.split('/')[0]}/***"
    return f"{secret_id[:2]}***"


class SecretsManager:
    """AWS Secrets Manager client for loading secret strings at runtime."""

    def __init__(
        self,
        region: str = "us-east-1",
        *,
        session: aioboto3.Session | None = None,
    ) -> None:
        self._region = region
        self._session = session
        self._cache: dict[str, str] = {}

    async def get_secret_string(self, secret_id: str) -> str | None:
        if secret_id in self._cache:
            return self._cache[secret_id]

        session = self._session or aioboto3.Session(region_name=self._region)
        try:
            async with session.client("secretsmanager") as client:
                response = await client.get_secret_value(SecretId=secret_id)
        except Exception as exc:
            logger.error(
                "failed_to_load_secret",
                secret_id=_sanitize_secret_id(secret_id),
                error=type(exc).__name__,
            )
            raise ActionCallError(
                f"Could not read secret {_sanitize_secret_id(secret_id)}",
                service="secretsmanager",
                action="GetSecretValue",
                code=type(exc).__name__,
            ) from exc

        secret_string = response.get("SecretString")
        if not secret_string:
            logger.warning("secret_not_found", secret_id=_sanitize_secret_id(secret_id))
            return None
        self._cache[secret_id] = secret_string
        return secret_string

"""
Token authorizer for API Gateway.

A one-shot version of the provisioning shape: fetch the reference API key,
compare it with the bearer token, and decide. No polling and no callback;
API Gateway maps an ``Unauthorized`` error to HTTP 401.
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog

from privlink.core.errors import ActionCallError, Unauthorized
from privlink.secrets import SecretsManager

logger = structlog.get_logger()


def generate_policy(principal_id: str, effect: str, resource: str | None) -> dict[str, Any]:
    """Build an authorizer response; the policy document is omitted without a resource."""
    response: dict[str, Any] = {"principalId": principal_id}
    if effect and resource:
        response["policyDocument"] = {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": effect,
                    "Resource": resource,
                }
            ],
        }
    return response


class TokenAuthorizer:
    def __init__(self, secrets: SecretsManager, secret_id: str, *, principal_id: str = "user") -> None:
        self._secrets = secrets
        self._secret_id = secret_id
        self._principal_id = principal_id

    async def authorize(self, token: str | None, method_arn: str | None) -> dict[str, Any]:
        if not token:
            logger.warning("authorization_denied", reason="missing_token")
            raise Unauthorized("Unauthorized")

        try:
            expected = await self._secrets.get_secret_string(self._secret_id)
        except ActionCallError as exc:
            logger.error("authorization_denied", reason="secret_unavailable", code=exc.code)
            raise Unauthorized("Unauthorized") from exc

        if expected is None or not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning("authorization_denied", reason="token_mismatch")
            raise Unauthorized("Unauthorized")

        logger.info("authorization_allowed", method_arn=method_arn)
        return generate_policy(self._principal_id, "Allow", method_arn)


__all__ = ["TokenAuthorizer", "generate_policy"]

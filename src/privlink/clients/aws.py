from __future__ import annotations

from typing import Any

import aioboto3
import structlog
from botocore import xform_name
from botocore.exceptions import BotoCoreError, ClientError

from privlink.core.errors import ActionCallError

logger = structlog.get_logger()


class AwsActionClient:
    """ActionClient backed by an aioboto3 service client.

    Actions use the API's own PascalCase names (``DescribeTrustStores``) and are
    mapped to the boto method (``describe_trust_stores``).
    """

    def __init__(self, service: str, session: aioboto3.Session) -> None:
        self.service = service
        self._session = session

    async def call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        method_name = xform_name(action)
        try:
            async with self._session.client(self.service) as client:
                method = getattr(client, method_name, None)
                if method is None:
                    raise ActionCallError(
                        f"Unknown action {action}",
                        service=self.service,
                        action=action,
                        code="UnknownAction",
                    )
                response = await method(**params)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            raise ActionCallError(
                error.get("Message") or str(exc),
                service=self.service,
                action=action,
                code=error.get("Code"),
            ) from exc
        except BotoCoreError as exc:
            raise ActionCallError(
                str(exc),
                service=self.service,
                action=action,
                code=type(exc).__name__,
            ) from exc
        response.pop("ResponseMetadata", None)
        return response


class AwsClientFactory:
    """Creates AwsActionClients that share one session per invocation."""

    def __init__(self, region: str, session: aioboto3.Session | None = None) -> None:
        self._session = session or aioboto3.Session(region_name=region)
        self._clients: dict[str, AwsActionClient] = {}

    def __call__(self, service: str) -> AwsActionClient:
        if service not in self._clients:
            self._clients[service] = AwsActionClient(service, self._session)
        return self._clients[service]

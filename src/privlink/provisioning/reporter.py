from __future__ import annotations

import httpx
import structlog

from privlink.cloudwatch import MetricsCollector
from privlink.core.errors import ResponseDeliveryError
from privlink.provisioning.models import ProvisioningResult

logger = structlog.get_logger()


class ResultReporter:
    """Delivers a ProvisioningResult to the orchestrator's pre-signed callback URL.

    Delivery is attempted exactly once. A failed PUT is logged and counted but
    never raised: the orchestrator's own timeout covers a lost response.
    """

    def __init__(
        self,
        *,
        log_stream_name: str | None = None,
        timeout: float = 30.0,
        metrics: MetricsCollector | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._log_stream_name = log_stream_name or "unknown"
        self._timeout = timeout
        self._metrics = metrics
        self._transport = transport

    @property
    def reason(self) -> str:
        return f"See the details in CloudWatch Log Stream: {self._log_stream_name}"

    async def send(self, response_url: str, result: ProvisioningResult) -> bool:
        body = result.to_response_body(self.reason)
        payload = body.encode("utf-8")
        headers = {
            "content-type": "",
            "content-length": str(len(payload)),
        }

        logger.info(
            "sending_response",
            status=str(result.status),
            physical_resource_id=result.physical_resource_id,
            body_size=len(payload),
        )

        try:
            status_code = await self._put(response_url, payload, headers)
        except ResponseDeliveryError as exc:
            logger.error("response_delivery_failed", error=exc.message, **exc.details)
            if self._metrics is not None:
                await self._metrics.emit("ResponseDeliveryFailed", 1, Status=str(result.status))
            return False

        logger.info("response_sent", status_code=status_code)
        return True

    async def _put(self, url: str, payload: bytes, headers: dict[str, str]) -> int:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.put(url, content=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ResponseDeliveryError(
                "Callback PUT could not be sent",
                {"error_type": type(exc).__name__},
            ) from exc

        if response.is_error:
            raise ResponseDeliveryError(
                "Callback PUT was rejected",
                {"status_code": response.status_code},
            )
        return response.status_code

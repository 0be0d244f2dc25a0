import pytest
from privlink.config import Settings
from privlink.core.errors import ConfigurationError
from privlink.handlers import handler_registry
from privlink.handlers.base import HandlerContext
from privlink.handlers.registry import HandlerRegistry
from privlink.provisioning.invoker import ActionInvoker
from privlink.provisioning.models import ProvisioningEvent
from privlink.provisioning.poller import ConvergencePoller


def test_builtin_handlers_are_registered():
    names = {spec.name for spec in handler_registry.list()}
    assert {"private_dns", "trust_store", "target_registration", "endpoint_policy"} <= names


def test_registry_create_and_unknown():
    registry = HandlerRegistry()
    registry.register("widget", lambda: "instance", description="test")

    assert registry.create("widget") == "instance"
    assert registry.list()[0].description == "test"
    with pytest.raises(KeyError):
        registry.create("missing")


def test_registry_requires_name():
    with pytest.raises(ValueError):
        HandlerRegistry().register("", lambda: None)


@pytest.fixture
def context(clients, settings, event_factory):
    def _build(**properties):
        invoker = ActionInvoker(clients)
        return HandlerContext(
            event=ProvisioningEvent.parse(event_factory(ResourceProperties=properties)),
            invoker=invoker,
            poller=ConvergencePoller(invoker),
            settings=settings,
        )

    return _build


def test_param_prefers_resource_properties(context):
    ctx = context(VpcEndpointId="vpce-from-props")
    assert ctx.param("VpcEndpointId", "vpce_id") == "vpce-from-props"


def test_param_falls_back_to_settings(context):
    assert context().param("VpcEndpointId", "vpce_id") == "vpce-0abc"


def test_param_default_and_missing(context, settings):
    settings.vpce_id = None
    ctx = context(VpcEndpointId="")

    assert ctx.param("VpcEndpointId", "vpce_id", default="fallback") == "fallback"
    with pytest.raises(ConfigurationError) as exc_info:
        ctx.param("VpcEndpointId", "vpce_id")
    assert exc_info.value.details == {"property": "VpcEndpointId", "env": "PRIVLINK_VPCE_ID"}


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("PRIVLINK_POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("PRIVLINK_POLL_MAX_ATTEMPTS", "40")
    monkeypatch.setenv("PRIVLINK_HANDLER", "trust_store")

    settings = Settings()

    assert settings.poll_interval_seconds == 2.5
    assert settings.poll_max_attempts == 40
    assert settings.handler == "trust_store"
    assert settings.tolerate_poll_errors is False

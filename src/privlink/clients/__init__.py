from privlink.clients.aws import AwsActionClient, AwsClientFactory
from privlink.clients.base import ActionClient, ClientFactory

__all__ = ["ActionClient", "AwsActionClient", "AwsClientFactory", "ClientFactory"]

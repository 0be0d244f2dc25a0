"""privlink: custom resource handlers for PrivateLink producer and consumer stacks."""

__version__ = "0.1.0"

"""Client for a Dapr sidecar: state, pub/sub, invocation, secrets, configuration and locks."""

__version__ = "0.1.0"
__all__ = ["client", "configuration", "invoke", "lock", "pubsub", "secret", "state", "utils"]
"""Kafka cluster model, Kubernetes manifests, Cruise Control scaling and topic admission."""

__version__ = "0.1.0"

__all__ = [
    "backoff",
    "cluster",
    "cruisecontrol",
    "envoy",
    "kafka_config",
    "kafka_services",
    "monitoring",
    "scale",
    "templates",
    "util",
    "webhook",
]
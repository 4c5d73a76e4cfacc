"""JMX exporter config maps for the brokers and Cruise Control."""

from __future__ import annotations

from typing import Any

from .cluster import KafkaCluster
from .templates import object_meta

CRUISE_CONTROL_JMX_TEMPLATE = "{}-cc-jmx-exporter"
BROKER_JMX_TEMPLATE = "{}-kafka-jmx-exporter"


def cruise_control_jmx_labels(name: str) -> dict[str, str]:
    """Labels of the Cruise Control JMX exporter resources."""
    return {"app": "cruisecontrol-jmx", "kafka_cr": name}


def kafka_jmx_labels(name: str) -> dict[str, str]:
    """Labels of the broker JMX exporter resources."""
    return {"app": "kafka-jmx", "kafka_cr": name}


def _config_map(meta: dict[str, Any], config: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": meta,
        "data": {"config.yaml": config},
    }


def cruise_control_jmx_config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The JMX exporter configuration used by Cruise Control."""
    return _config_map(
        object_meta(
            CRUISE_CONTROL_JMX_TEMPLATE.format(cluster.name),
            cruise_control_jmx_labels(cluster.name),
            cluster,
        ),
        cluster.spec.monitoring_config.cc_jmx_exporter_config,
    )


def kafka_jmx_config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The JMX exporter configuration used by the brokers."""
    return _config_map(
        object_meta(
            BROKER_JMX_TEMPLATE.format(cluster.name),
            kafka_jmx_labels(cluster.name),
            cluster,
        ),
        cluster.spec.monitoring_config.kafka_jmx_exporter_config,
    )
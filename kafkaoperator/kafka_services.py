"""Services and volume claims of the Kafka brokers."""

from __future__ import annotations

import copy
from typing import Any

from .cluster import KafkaCluster, StorageConfig
from .kafka_config import labels_for_kafka
from .templates import (
    ALL_BROKER_SERVICE_TEMPLATE,
    HEADLESS_SERVICE_TEMPLATE,
    object_meta,
    object_meta_with_generated_name_and_annotations,
)
from .util import merge_labels

METRICS_PORT = 9020
BROKER_STORAGE_TEMPLATE = "{}-storage"


def _port(name: str, port: int) -> dict[str, Any]:
    return {"name": name, "port": port, "targetPort": port, "protocol": "TCP"}


def _listener_ports(cluster: KafkaCluster) -> list[dict[str, Any]]:
    return [
        _port(listener.name.replace("_", ""), listener.container_port)
        for listener in cluster.spec.listeners_config.internal_listeners
    ]


def _broker_labels(cluster: KafkaCluster, broker_id: int) -> dict[str, str]:
    return merge_labels(labels_for_kafka(cluster.name), {"brokerId": str(broker_id)})


def _service(metadata: dict[str, Any], selector: dict[str, str], ports: list, **extra) -> dict:
    spec: dict[str, Any] = {
        "type": "ClusterIP",
        "sessionAffinity": "None",
        "selector": selector,
        "ports": ports,
    }
    spec.update(extra)
    return {"apiVersion": "v1", "kind": "Service", "metadata": metadata, "spec": spec}


def all_broker_service(cluster: KafkaCluster) -> dict[str, Any]:
    """A ClusterIP service in front of every broker."""
    return _service(
        object_meta(
            ALL_BROKER_SERVICE_TEMPLATE.format(cluster.name),
            labels_for_kafka(cluster.name),
            cluster,
        ),
        labels_for_kafka(cluster.name),
        _listener_ports(cluster),
    )


def headless_service(cluster: KafkaCluster) -> dict[str, Any]:
    """A headless service over all brokers, with the metrics port added."""
    ports = _listener_ports(cluster)
    ports.append(_port("metrics", METRICS_PORT))
    return _service(
        object_meta(
            HEADLESS_SERVICE_TEMPLATE.format(cluster.name),
            labels_for_kafka(cluster.name),
            cluster,
        ),
        labels_for_kafka(cluster.name),
        ports,
        clusterIP="None",
    )


def broker_service(cluster: KafkaCluster, broker_id: int) -> dict[str, Any]:
    """A service selecting a single broker."""
    ports = _listener_ports(cluster)
    ports.append(_port("metrics", METRICS_PORT))
    return _service(
        object_meta(
            f"{cluster.name}-{broker_id}", _broker_labels(cluster, broker_id), cluster
        ),
        _broker_labels(cluster, broker_id),
        ports,
    )


def broker_pvc(cluster: KafkaCluster, broker_id: int, storage: StorageConfig) -> dict[str, Any]:
    """A persistent volume claim for one storage of a broker."""
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": object_meta_with_generated_name_and_annotations(
            BROKER_STORAGE_TEMPLATE.format(cluster.name),
            _broker_labels(cluster, broker_id),
            {"mountPath": storage.mount_path},
            cluster,
        ),
        "spec": copy.deepcopy(storage.pvc_spec),
    }
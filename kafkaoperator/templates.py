"""Object metadata builders and shared resource names."""

from __future__ import annotations

from typing import Any

from .cluster import KafkaCluster

ENVOY_SERVICE_NAME = "envoy-loadbalancer"
ALL_BROKER_SERVICE_TEMPLATE = "{}-all-broker"
HEADLESS_SERVICE_TEMPLATE = "{}-headless"
BROKER_ISSUER_TEMPLATE = "{}-issuer"
BROKER_CONTROLLER_TEMPLATE = "{}-crd-controller"


def _owner_references(cluster: KafkaCluster) -> list[dict[str, Any]]:
    return [
        {
            "apiVersion": cluster.api_version,
            "kind": cluster.kind,
            "name": cluster.name,
            "uid": cluster.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }
    ]


def object_meta(name: str, labels: dict[str, str], cluster: KafkaCluster) -> dict[str, Any]:
    """Metadata with a name, the cluster's namespace, labels and an owner reference."""
    return {
        "name": name,
        "namespace": cluster.namespace,
        "labels": dict(labels),
        "ownerReferences": _owner_references(cluster),
    }


def object_meta_with_generated_name(
    name_prefix: str, labels: dict[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """Like ``object_meta`` but with a name prefix the API server completes."""
    return {
        "generateName": name_prefix,
        "namespace": cluster.namespace,
        "labels": dict(labels),
        "ownerReferences": _owner_references(cluster),
    }


def object_meta_with_annotations(
    name: str, labels: dict[str, str], annotations: dict[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """``object_meta`` with annotations added."""
    meta = object_meta(name, labels, cluster)
    meta["annotations"] = dict(annotations)
    return meta


def object_meta_with_generated_name_and_annotations(
    name_prefix: str, labels: dict[str, str], annotations: dict[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """``object_meta_with_generated_name`` with annotations added."""
    meta = object_meta_with_generated_name(name_prefix, labels, cluster)
    meta["annotations"] = dict(annotations)
    return meta


def object_meta_cluster_scope(
    name: str, labels: dict[str, str], cluster: KafkaCluster
) -> dict[str, Any]:
    """Metadata for a cluster-scoped object: no namespace."""
    return {
        "name": name,
        "labels": dict(labels),
        "ownerReferences": _owner_references(cluster),
    }
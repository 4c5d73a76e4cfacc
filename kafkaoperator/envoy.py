"""Envoy load balancer that exposes the brokers outside the cluster."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

import yaml

from .cluster import Broker, ExternalListener, KafkaCluster
from .templates import ENVOY_SERVICE_NAME, object_meta, object_meta_with_annotations

COMPONENT_NAME = "envoy"
ENVOY_VOLUME_AND_CONFIG_NAME = "envoy-config"
ENVOY_DEPLOYMENT_NAME = "envoy"
ADMIN_PORT = 9901
TCP_PROXY_FILTER = "envoy.tcp_proxy"
CONNECT_TIMEOUT = "0.250s"

LABEL_SELECTOR = {"app": "envoy"}


def _socket_address(address: str, port: int) -> dict[str, Any]:
    return {"socketAddress": {"address": address, "portValue": port}}


def _first_external_listener(cluster: KafkaCluster) -> ExternalListener:
    listeners = cluster.spec.listeners_config.external_listeners
    if not listeners:
        raise ValueError("envoy needs at least one external listener")
    return listeners[0]


def _listener(broker: Broker, external: ExternalListener) -> dict[str, Any]:
    return {
        "address": _socket_address("0.0.0.0", external.external_starting_port + broker.id),
        "filterChains": [
            {
                "filters": [
                    {
                        "name": TCP_PROXY_FILTER,
                        "config": {
                            "stat_prefix": f"broker_tcp-{broker.id}",
                            "cluster": f"broker-{broker.id}",
                        },
                    }
                ]
            }
        ],
    }


def _cluster(cluster: KafkaCluster, broker: Broker, external: ExternalListener) -> dict[str, Any]:
    host = (
        f"{cluster.name}-{broker.id}.{cluster.name}-headless."
        f"{cluster.namespace}.svc.cluster.local"
    )
    return {
        "name": f"broker-{broker.id}",
        "connectTimeout": CONNECT_TIMEOUT,
        "type": "STRICT_DNS",
        "http2ProtocolOptions": {},
        "hosts": [_socket_address(host, external.container_port)],
    }


def generate_envoy_config(cluster: KafkaCluster) -> str:
    """The Envoy bootstrap configuration as YAML, one TCP proxy per broker."""
    brokers = cluster.spec.brokers
    static_resources: dict[str, Any] = {}
    if brokers:
        external = _first_external_listener(cluster)
        static_resources["listeners"] = [_listener(broker, external) for broker in brokers]
        static_resources["clusters"] = [
            _cluster(cluster, broker, external) for broker in brokers
        ]
    bootstrap = {
        "admin": {
            "accessLogPath": "/tmp/admin_access.log",
            "address": _socket_address("0.0.0.0", ADMIN_PORT),
        },
        "staticResources": static_resources,
    }
    return yaml.safe_dump(bootstrap, default_flow_style=False, sort_keys=True)


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The ConfigMap holding ``envoy.yaml``."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(ENVOY_VOLUME_AND_CONFIG_NAME, LABEL_SELECTOR, cluster),
        "data": {"envoy.yaml": generate_envoy_config(cluster)},
    }


def exposed_container_ports(
    external_listeners: Iterable[ExternalListener], brokers: Iterable[Broker]
) -> list[dict[str, Any]]:
    """Container ports, one per broker on every external listener."""
    brokers = list(brokers)
    return [
        {
            "name": f"broker-{broker.id}",
            "containerPort": listener.external_starting_port + broker.id,
            "protocol": "TCP",
        }
        for listener in external_listeners
        for broker in brokers
    ]


def exposed_service_ports(
    external_listeners: Iterable[ExternalListener], brokers: Iterable[Broker]
) -> list[dict[str, Any]]:
    """Service ports, one per broker on every external listener."""
    brokers = list(brokers)
    return [
        {
            "name": f"broker-{broker.id}",
            "port": listener.external_starting_port + broker.id,
            "targetPort": listener.external_starting_port + broker.id,
            "protocol": "TCP",
        }
        for listener in external_listeners
        for broker in brokers
    ]


def deployment(cluster: KafkaCluster) -> dict[str, Any]:
    """The Deployment running Envoy with its config mounted read-only."""
    spec = cluster.spec
    envoy_config = spec.envoy_config
    ports = exposed_container_ports(spec.listeners_config.external_listeners, spec.brokers)
    ports.append({"name": "envoy-admin", "containerPort": ADMIN_PORT, "protocol": "TCP"})
    volumes = [
        {
            "name": ENVOY_VOLUME_AND_CONFIG_NAME,
            "configMap": {"name": ENVOY_VOLUME_AND_CONFIG_NAME, "defaultMode": 0o644},
        }
    ]
    volume_mounts = [
        {"name": ENVOY_VOLUME_AND_CONFIG_NAME, "mountPath": "/etc/envoy", "readOnly": True}
    ]
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": object_meta(ENVOY_DEPLOYMENT_NAME, LABEL_SELECTOR, cluster),
        "spec": {
            "selector": {"matchLabels": dict(LABEL_SELECTOR)},
            "template": {
                "metadata": {"labels": dict(LABEL_SELECTOR)},
                "spec": {
                    "serviceAccountName": envoy_config.service_account,
                    "imagePullSecrets": copy.deepcopy(envoy_config.image_pull_secrets),
                    "tolerations": copy.deepcopy(envoy_config.tolerations),
                    "nodeSelector": dict(envoy_config.node_selector),
                    "containers": [
                        {
                            "name": "envoy",
                            "image": envoy_config.image,
                            "ports": ports,
                            "volumeMounts": volume_mounts,
                            "resources": copy.deepcopy(envoy_config.resources),
                        }
                    ],
                    "volumes": volumes,
                },
            },
        },
    }


def load_balancer(cluster: KafkaCluster) -> dict[str, Any]:
    """The LoadBalancer service in front of Envoy."""
    spec = cluster.spec
    envoy_config = spec.envoy_config
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": object_meta_with_annotations(
            ENVOY_SERVICE_NAME, {}, envoy_config.annotations, cluster
        ),
        "spec": {
            "selector": {"app": "envoy"},
            "type": "LoadBalancer",
            "ports": exposed_service_ports(
                spec.listeners_config.external_listeners, spec.brokers
            ),
            "loadBalancerSourceRanges": list(envoy_config.load_balancer_source_ranges),
        },
    }
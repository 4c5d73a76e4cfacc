"""Broker configuration rendering and the per-broker config map."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .cluster import (
    BrokerConfig,
    InternalListener,
    KafkaCluster,
    ListenersConfig,
    StorageConfig,
)
from .templates import object_meta
from .util import (
    is_ssl_enabled_for_internal_communication,
    merge_labels,
    parse_properties_format,
)

_log = logging.getLogger(__name__)

BROKER_CONFIG_TEMPLATE = "{}-config"

_METRICS_REPORTER = (
    "com.linkedin.kafka.cruisecontrol.metricsreporter.CruiseControlMetricsReporter"
)
_SERVER_SSL_BLOCK = (
    "\n\n"
    "ssl.keystore.location=/var/run/secrets/java.io/keystores/kafka.server.keystore.jks\n"
    "ssl.truststore.location=/var/run/secrets/java.io/keystores/kafka.server.truststore.jks\n"
    "ssl.client.auth=required\n"
    "\n"
)
_REPORTER_SSL_BLOCK = (
    "\n\n"
    "cruise.control.metrics.reporter.security.protocol=SSL\n"
    "cruise.control.metrics.reporter.ssl.truststore.location="
    "/var/run/secrets/java.io/keystores/client.truststore.jks\n"
    "cruise.control.metrics.reporter.ssl.keystore.location="
    "/var/run/secrets/java.io/keystores/client.keystore.jks\n"
    "\n"
)


def labels_for_kafka(name: str) -> dict[str, str]:
    """Labels selecting the resources that belong to the named cluster."""
    return {"app": "kafka", "kafka_cr": name}


def generate_super_users(users: Iterable[str]) -> list[str]:
    """Prefix every user name with ``User:``."""
    return [f"User:{user}" for user in users]


def _internal_address(
    listener: InternalListener,
    broker_id: int,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> str:
    if headless_service_enabled:
        host = f"{cr_name}-{broker_id}.{cr_name}-headless.{namespace}.svc.cluster.local"
    else:
        host = f"{cr_name}-{broker_id}.{namespace}.svc.cluster.local"
    return f"{listener.name.upper()}://{host}:{listener.container_port}"


def generate_advertised_listener_config(
    broker_id: int,
    listeners_config: ListenersConfig,
    load_balancer_ip: str,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> str:
    """The ``advertised.listeners`` line for one broker."""
    entries = [
        f"{listener.name.upper()}://{load_balancer_ip}:"
        f"{listener.external_starting_port + broker_id}"
        for listener in listeners_config.external_listeners
    ]
    entries.extend(
        _internal_address(listener, broker_id, namespace, cr_name, headless_service_enabled)
        for listener in listeners_config.internal_listeners
    )
    return f"advertised.listeners={','.join(entries)}\n"


def generate_storage_config(storage_configs: Iterable[StorageConfig]) -> str:
    """Comma separated Kafka log directories under each mount path."""
    return ",".join(f"{storage.mount_path}/kafka" for storage in storage_configs)


def generate_listener_specific_config(listeners_config: ListenersConfig) -> str:
    """Protocol map, inter-broker protocol and listeners lines."""
    inter_broker_type = ""
    protocol_map: list[str] = []
    listeners: list[str] = []

    for listener in listeners_config.internal_listeners:
        if listener.used_for_inner_broker_communication:
            if not inter_broker_type:
                inter_broker_type = listener.type.upper()
            else:
                _log.error("config error: inter broker listener name already set")
        protocol_map.append(f"{listener.name.upper()}:{listener.type.upper()}")
        listeners.append(f"{listener.name.upper()}://:{listener.container_port}")
    for listener in listeners_config.external_listeners:
        protocol_map.append(f"{listener.name.upper()}:{listener.type.upper()}")
        listeners.append(f"{listener.name.upper()}://:{listener.container_port}")

    return (
        f"listener.security.protocol.map={','.join(protocol_map)}\n"
        f"security.inter.broker.protocol={inter_broker_type}\n"
        f"listeners={','.join(listeners)}\n"
    )


def get_internal_listeners(
    internal_listeners: Iterable[InternalListener],
    broker_id: int,
    namespace: str,
    cr_name: str,
    headless_service_enabled: bool,
) -> list[str]:
    """Addresses of a broker on every internal listener."""
    return [
        _internal_address(listener, broker_id, namespace, cr_name, headless_service_enabled)
        for listener in internal_listeners
    ]


def render_config_template(
    cluster: KafkaCluster,
    broker_config: BrokerConfig,
    broker_id: int,
    load_balancer_ip: str,
    super_users: Iterable[str],
) -> str:
    """Render the operator generated part of a broker's server properties."""
    spec = cluster.spec
    listeners_config = spec.listeners_config
    ssl_secrets = listeners_config.ssl_secrets
    ssl_internal = ssl_secrets is not None and is_ssl_enabled_for_internal_communication(
        listeners_config.internal_listeners
    )
    storage = generate_storage_config(broker_config.storage_configs)
    bootstrap = ",".join(
        get_internal_listeners(
            listeners_config.internal_listeners,
            broker_id,
            cluster.namespace,
            cluster.name,
            spec.headless_service_enabled,
        )
    )

    parts = [
        "\n",
        generate_listener_specific_config(listeners_config),
        "\n\n",
        f"zookeeper.connect={','.join(spec.zk_addresses)}\n\n",
    ]
    if ssl_secrets is not None:
        parts.append(_SERVER_SSL_BLOCK)
        if ssl_internal:
            parts.append(_REPORTER_SSL_BLOCK)
        parts.append("\n")
    parts.append(
        "\n\n"
        f"metric.reporters={_METRICS_REPORTER}\n"
        f"cruise.control.metrics.reporter.bootstrap.servers={bootstrap}\n"
        f"broker.id={broker_id}\n\n"
    )
    if storage:
        parts.append(f"\nlog.dirs={storage}\n")
    parts.append("\n\n")
    parts.append(
        generate_advertised_listener_config(
            broker_id,
            listeners_config,
            load_balancer_ip,
            cluster.namespace,
            cluster.name,
            spec.headless_service_enabled,
        )
    )
    parts.append(f"\n\nsuper.users={';'.join(generate_super_users(super_users))}\n")
    return "".join(parts)


def _fill_missing(dst: dict[str, str], src: dict[str, str]) -> None:
    """Copy entries of ``src`` whose key is absent or empty in ``dst``."""
    for key, value in src.items():
        if not dst.get(key):
            dst[key] = value


def generate_broker_config(
    cluster: KafkaCluster,
    broker_id: int,
    broker_config: BrokerConfig,
    super_users: Iterable[str],
    load_balancer_ip: str,
) -> str:
    """The complete, sorted server properties of one broker."""
    read_only_cluster = parse_properties_format(cluster.spec.read_only_config)
    read_only_broker: dict[str, str] = next(
        (
            parse_properties_format(broker.read_only_config)
            for broker in cluster.spec.brokers
            if broker.id == broker_id
        ),
        {},
    )
    _fill_missing(read_only_broker, read_only_cluster)

    complete: dict[str, str] = {}
    _fill_missing(
        complete,
        parse_properties_format(
            render_config_template(
                cluster, broker_config, broker_id, load_balancer_ip, super_users
            )
        ),
    )
    _fill_missing(complete, read_only_broker)

    return "\n".join(sorted(f"{key}={value}" for key, value in complete.items()))


def broker_config_map(
    cluster: KafkaCluster,
    broker_id: int,
    broker_config: BrokerConfig,
    load_balancer_ip: str,
    super_users: Iterable[str],
) -> dict[str, Any]:
    """The ConfigMap holding one broker's configuration."""
    labels = merge_labels(labels_for_kafka(cluster.name), {"brokerId": str(broker_id)})
    name = f"{BROKER_CONFIG_TEMPLATE.format(cluster.name)}-{broker_id}"
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(name, labels, cluster),
        "data": {
            "broker-config": generate_broker_config(
                cluster, broker_id, broker_config, super_users, load_balancer_ip
            )
        },
    }
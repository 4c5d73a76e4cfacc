"""Data model of a Kafka cluster resource and its parts."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any


@dataclass
class InternalListener:
    """A listener used for traffic inside the Kubernetes cluster."""

    type: str
    name: str
    container_port: int
    used_for_inner_broker_communication: bool = False


@dataclass
class ExternalListener:
    """A listener exposed outside of the Kubernetes cluster."""

    type: str
    name: str
    container_port: int
    external_starting_port: int


@dataclass
class SSLSecrets:
    """Where the TLS material of the cluster lives."""

    tls_secret_name: str = ""
    create: bool = False


@dataclass
class ListenersConfig:
    """All listeners of the cluster plus optional SSL settings."""

    internal_listeners: list[InternalListener] = field(default_factory=list)
    external_listeners: list[ExternalListener] = field(default_factory=list)
    ssl_secrets: SSLSecrets | None = None


@dataclass
class StorageConfig:
    """A volume mounted into a broker."""

    mount_path: str
    pvc_spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class BrokerConfig:
    """Settings of a single broker or of a broker config group."""

    image: str = ""
    config: str = ""
    storage_configs: list[StorageConfig] = field(default_factory=list)

    def merged_with(self, other: BrokerConfig | None) -> BrokerConfig:
        """Return a copy in which every empty field is taken from ``other``."""
        if other is None:
            return copy.deepcopy(self)
        values = {}
        for f in fields(self):
            mine = getattr(self, f.name)
            values[f.name] = copy.deepcopy(mine if mine else getattr(other, f.name))
        return BrokerConfig(**values)


@dataclass
class Broker:
    """One broker of the cluster."""

    id: int
    broker_config_group: str = ""
    read_only_config: str = ""
    broker_config: BrokerConfig | None = None


@dataclass
class CruiseControlConfig:
    """Settings for the Cruise Control deployment."""

    cruise_control_endpoint: str = ""
    config: str = ""
    capacity_config: str = ""
    cluster_config: str = ""
    image: str = ""


@dataclass
class MonitoringConfig:
    """JMX exporter settings for brokers and Cruise Control."""

    jmx_image: str = ""
    path_to_jar: str = ""
    kafka_jmx_exporter_config: str = ""
    cc_jmx_exporter_config: str = ""


@dataclass
class EnvoyConfig:
    """Settings for the Envoy load balancer in front of the brokers."""

    image: str = ""
    resources: dict[str, Any] = field(default_factory=dict)
    service_account: str = ""
    image_pull_secrets: list[dict[str, str]] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    node_selector: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    load_balancer_source_ranges: list[str] = field(default_factory=list)


@dataclass
class KafkaClusterSpec:
    """Desired state of a Kafka cluster."""

    headless_service_enabled: bool = False
    listeners_config: ListenersConfig = field(default_factory=ListenersConfig)
    zk_addresses: list[str] = field(default_factory=list)
    rack_awareness: dict[str, Any] | None = None
    cluster_image: str = ""
    read_only_config: str = ""
    cluster_wide_config: str = ""
    broker_config_groups: dict[str, BrokerConfig] = field(default_factory=dict)
    brokers: list[Broker] = field(default_factory=list)
    cruise_control_config: CruiseControlConfig = field(default_factory=CruiseControlConfig)
    envoy_config: EnvoyConfig = field(default_factory=EnvoyConfig)
    monitoring_config: MonitoringConfig = field(default_factory=MonitoringConfig)


@dataclass
class KafkaCluster:
    """A Kafka cluster custom resource."""

    name: str
    namespace: str = ""
    spec: KafkaClusterSpec = field(default_factory=KafkaClusterSpec)
    api_version: str = "kafka.banzaicloud.io/v1beta1"
    kind: str = "KafkaCluster"
    uid: str = ""
"""Resources of the Cruise Control deployment that balances the brokers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .cluster import KafkaCluster, ListenersConfig
from .templates import (
    ALL_BROKER_SERVICE_TEMPLATE,
    HEADLESS_SERVICE_TEMPLATE,
    object_meta,
)
from .util import is_ssl_enabled_for_internal_communication

COMPONENT_NAME_TEMPLATE = "{}-cruisecontrol"
SERVICE_NAME_TEMPLATE = "{}-cruisecontrol-svc"
CONFIG_AND_VOLUME_NAME_TEMPLATE = "{}-cruisecontrol-config"
DEPLOYMENT_NAME_TEMPLATE = "{}-cruisecontrol"
CRUISE_CONTROL_PORT = 8090
METRICS_PORT = 9020

LABEL_SELECTOR = {"app": "cruisecontrol"}

_SSL_CONFIG = (
    "\n"
    "security.protocol=SSL\n"
    "ssl.truststore.location=/var/run/secrets/java.io/keystores/client.truststore.jks\n"
    "ssl.keystore.location=/var/run/secrets/java.io/keystores/client.keystore.jks\n"
)

_LOG4J_PROPERTIES = """
log4j.rootLogger = INFO, FILE
    log4j.appender.FILE=org.apache.log4j.FileAppender
    log4j.appender.FILE.File=/dev/stdout
    log4j.appender.FILE.layout=org.apache.log4j.PatternLayout
    log4j.appender.FILE.layout.conversionPattern=%-6r [%15.15t] %-5p %30.30c %x - %m%n
"""

_LOG4J2_XML = """
<?xml version="1.0" encoding="UTF-8"?>
    <Configuration status="INFO">
        <Appenders>
            <File name="Console" fileName="/dev/stdout">
                <PatternLayout pattern="%d{yyy-MM-dd HH:mm:ss.SSS} [%t] %-5level %logger{36} - %msg%n"/>
            </File>
        </Appenders>
        <Loggers>
            <Root level="info">
                <AppenderRef ref="Console" />
            </Root>
        </Loggers>
    </Configuration>
"""


def generate_ssl_config(listeners_config: ListenersConfig) -> str:
    """Client SSL settings, present only when internal traffic uses SSL."""
    if listeners_config.ssl_secrets is not None and is_ssl_enabled_for_internal_communication(
        listeners_config.internal_listeners
    ):
        return _SSL_CONFIG
    return ""


def generate_bootstrap_server(headless_enabled: bool, cluster_name: str) -> str:
    """Name of the service Cruise Control uses to reach the brokers."""
    if headless_enabled:
        return HEADLESS_SERVICE_TEMPLATE.format(cluster_name)
    return ALL_BROKER_SERVICE_TEMPLATE.format(cluster_name)


def prepare_zookeeper_address(zk_addresses: Iterable[str]) -> str:
    """Join addresses with commas, adding a root chroot to those without one."""
    return ",".join(addr if "/" in addr else f"{addr}/" for addr in zk_addresses)


def config_map(cluster: KafkaCluster) -> dict[str, Any]:
    """The ConfigMap holding the Cruise Control configuration files."""
    spec = cluster.spec
    internal_listeners = spec.listeners_config.internal_listeners
    if not internal_listeners:
        raise ValueError("cruise control needs at least one internal listener")
    cc_config = spec.cruise_control_config
    properties = (
        cc_config.config
        + "\n"
        "    # The Kafka cluster to control.\n"
        f"    bootstrap.servers={generate_bootstrap_server(spec.headless_service_enabled, cluster.name)}"
        f":{internal_listeners[0].container_port}\n"
        "    # The zookeeper connect of the Kafka cluster\n"
        f"    zookeeper.connect={prepare_zookeeper_address(spec.zk_addresses)}\n"
        + generate_ssl_config(spec.listeners_config)
    )
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": object_meta(
            CONFIG_AND_VOLUME_NAME_TEMPLATE.format(cluster.name), LABEL_SELECTOR, cluster
        ),
        "data": {
            "cruisecontrol.properties": properties,
            "capacity.json": cc_config.capacity_config,
            "clusterConfigs.json": cc_config.cluster_config,
            "log4j.properties": _LOG4J_PROPERTIES,
            "log4j2.xml": _LOG4J2_XML,
        },
    }


def service(cluster: KafkaCluster) -> dict[str, Any]:
    """The service exposing the Cruise Control API and its metrics."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": object_meta(
            SERVICE_NAME_TEMPLATE.format(cluster.name), LABEL_SELECTOR, cluster
        ),
        "spec": {
            "selector": dict(LABEL_SELECTOR),
            "ports": [
                {
                    "name": "cc",
                    "port": CRUISE_CONTROL_PORT,
                    "targetPort": CRUISE_CONTROL_PORT,
                    "protocol": "TCP",
                },
                {
                    "name": "metrics",
                    "port": METRICS_PORT,
                    "targetPort": METRICS_PORT,
                    "protocol": "TCP",
                },
            ],
        },
    }
import logging

import pytest

from kafkaoperator.cluster import (
    Broker,
    BrokerConfig,
    ExternalListener,
    InternalListener,
    KafkaCluster,
    KafkaClusterSpec,
    ListenersConfig,
    SSLSecrets,
    StorageConfig,
)
from kafkaoperator.kafka_config import (
    broker_config_map,
    generate_advertised_listener_config,
    generate_broker_config,
    generate_listener_specific_config,
    generate_storage_config,
    generate_super_users,
    get_internal_listeners,
    labels_for_kafka,
    render_config_template,
)
from kafkaoperator.util import parse_properties_format


def _cluster(read_only="", cluster_wide="", broker_read_only="", broker_config="", storage=None):
    return KafkaCluster(
        name="kafka",
        namespace="kafka",
        spec=KafkaClusterSpec(
            zk_addresses=["example.zk:2181"],
            listeners_config=ListenersConfig(
                internal_listeners=[
                    InternalListener(
                        type="plaintext",
                        name="plaintext",
                        used_for_inner_broker_communication=True,
                        container_port=9092,
                    )
                ]
            ),
            read_only_config=read_only,
            cluster_wide_config=cluster_wide,
            brokers=[
                Broker(
                    id=0,
                    read_only_config=broker_read_only,
                    broker_config=BrokerConfig(
                        config=broker_config, storage_configs=list(storage or [])
                    ),
                )
            ],
        ),
    )


BASIC = """advertised.listeners=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
broker.id=0
cruise.control.metrics.reporter.bootstrap.servers=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
listener.security.protocol.map=PLAINTEXT:PLAINTEXT
listeners=PLAINTEXT://:9092
metric.reporters=com.linkedin.kafka.cruisecontrol.metricsreporter.CruiseControlMetricsReporter
security.inter.broker.protocol=PLAINTEXT
super.users=
zookeeper.connect=example.zk:2181"""

WITH_STORAGE = """advertised.listeners=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
broker.id=0
cruise.control.metrics.reporter.bootstrap.servers=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
listener.security.protocol.map=PLAINTEXT:PLAINTEXT
listeners=PLAINTEXT://:9092
log.dirs=/kafka-logs/kafka
metric.reporters=com.linkedin.kafka.cruisecontrol.metricsreporter.CruiseControlMetricsReporter
security.inter.broker.protocol=PLAINTEXT
super.users=
zookeeper.connect=example.zk:2181"""

READ_ONLY = """advertised.listeners=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
auto.create.topics.enable=true
broker.id=0
control.plane.listener.name=thisisatest
cruise.control.metrics.reporter.bootstrap.servers=PLAINTEXT://kafka-0.kafka.svc.cluster.local:9092
listener.security.protocol.map=PLAINTEXT:PLAINTEXT
listeners=PLAINTEXT://:9092
metric.reporters=com.linkedin.kafka.cruisecontrol.metricsreporter.CruiseControlMetricsReporter
security.inter.broker.protocol=PLAINTEXT
super.users=
zookeeper.connect=example.zk:2181"""


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({}, BASIC),
        ({"storage": [StorageConfig(mount_path="/kafka-logs")]}, WITH_STORAGE),
        (
            {
                "read_only": "\nauto.create.topics.enable=false\ncontrol.plane.listener.name=thisisatest\n",
                "cluster_wide": "\nbackground.threads=20\ncompression.type=snappy\n",
                "broker_read_only": "\nauto.create.topics.enable=true\n",
            },
            READ_ONLY,
        ),
    ],
    ids=["basicConfig", "basicConfigWithCustomStorage", "readOnlyRedefinedInOneBroker"],
)
def test_generate_broker_config(kwargs, expected):
    cluster = _cluster(**kwargs)
    result = generate_broker_config(cluster, 0, cluster.spec.brokers[0].broker_config, [], "")
    assert result == expected


def test_generated_values_win_over_read_only():
    cluster = _cluster(read_only="broker.id=7\nnum.io.threads=4\n")
    props = parse_properties_format(
        generate_broker_config(cluster, 0, cluster.spec.brokers[0].broker_config, [], "")
    )
    assert props["broker.id"] == "0"
    assert props["num.io.threads"] == "4"


def test_super_users():
    assert generate_super_users(["CN=a", "CN=b"]) == ["User:CN=a", "User:CN=b"]
    assert generate_super_users([]) == []


def test_super_users_in_config_joined_by_semicolon():
    cluster = _cluster()
    props = parse_properties_format(
        generate_broker_config(cluster, 0, cluster.spec.brokers[0].broker_config, ["a", "b"], "")
    )
    assert props["super.users"] == "User:a;User:b"


def test_storage_config_joins_paths():
    storages = [StorageConfig(mount_path="/a"), StorageConfig(mount_path="/b")]
    assert generate_storage_config(storages) == "/a/kafka,/b/kafka"
    assert generate_storage_config([]) == ""


def test_advertised_listeners_external_and_headless():
    listeners = ListenersConfig(
        internal_listeners=[InternalListener(type="plaintext", name="plaintext", container_port=9092)],
        external_listeners=[
            ExternalListener(type="plaintext", name="external", container_port=9094, external_starting_port=19090)
        ],
    )
    line = generate_advertised_listener_config(2, listeners, "10.0.0.1", "ns", "kafka", True)
    assert line == (
        "advertised.listeners=EXTERNAL://10.0.0.1:19092,"
        "PLAINTEXT://kafka-2.kafka-headless.ns.svc.cluster.local:9092\n"
    )


def test_internal_listeners_non_headless():
    listeners = [InternalListener(type="ssl", name="ssl", container_port=29092)]
    assert get_internal_listeners(listeners, 1, "ns", "kafka", False) == [
        "SSL://kafka-1.ns.svc.cluster.local:29092"
    ]


def test_listener_specific_config_keeps_first_inter_broker(caplog):
    listeners = ListenersConfig(
        internal_listeners=[
            InternalListener(type="plaintext", name="plain", container_port=9092,
                             used_for_inner_broker_communication=True),
            InternalListener(type="ssl", name="secure", container_port=9093,
                             used_for_inner_broker_communication=True),
        ],
        external_listeners=[
            ExternalListener(type="plaintext", name="ext", container_port=9094, external_starting_port=19090)
        ],
    )
    with caplog.at_level(logging.ERROR):
        result = generate_listener_specific_config(listeners)
    assert result == (
        "listener.security.protocol.map=PLAIN:PLAINTEXT,SECURE:SSL,EXT:PLAINTEXT\n"
        "security.inter.broker.protocol=PLAINTEXT\n"
        "listeners=PLAIN://:9092,SECURE://:9093,EXT://:9094\n"
    )
    assert len(caplog.records) == 1


def test_render_with_ssl_adds_keystore_settings():
    cluster = _cluster()
    cluster.spec.listeners_config.ssl_secrets = SSLSecrets(tls_secret_name="tls")
    cluster.spec.listeners_config.internal_listeners[0].type = "ssl"
    props = parse_properties_format(
        render_config_template(cluster, cluster.spec.brokers[0].broker_config, 0, "", [])
    )
    assert props["ssl.client.auth"] == "required"
    assert props["cruise.control.metrics.reporter.security.protocol"] == "SSL"


def test_render_ssl_without_internal_ssl_skips_reporter_settings():
    cluster = _cluster()
    cluster.spec.listeners_config.ssl_secrets = SSLSecrets(tls_secret_name="tls")
    props = parse_properties_format(
        render_config_template(cluster, cluster.spec.brokers[0].broker_config, 0, "", [])
    )
    assert "ssl.keystore.location" in props
    assert "cruise.control.metrics.reporter.security.protocol" not in props


def test_render_without_ssl_has_no_ssl_keys():
    cluster = _cluster()
    props = parse_properties_format(
        render_config_template(cluster, cluster.spec.brokers[0].broker_config, 0, "", [])
    )
    assert not any(key.startswith("ssl.") for key in props)


def test_broker_config_map():
    cluster = _cluster()
    cm = broker_config_map(cluster, 0, cluster.spec.brokers[0].broker_config, "", [])
    assert cm["kind"] == "ConfigMap"
    assert cm["metadata"]["name"] == "kafka-config-0"
    assert cm["metadata"]["labels"] == {"app": "kafka", "kafka_cr": "kafka", "brokerId": "0"}
    assert cm["data"]["broker-config"] == BASIC


def test_labels_for_kafka():
    assert labels_for_kafka("kafka") == {"app": "kafka", "kafka_cr": "kafka"}
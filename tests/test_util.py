import pytest

from kafkaoperator.cluster import (
    Broker,
    BrokerConfig,
    InternalListener,
    KafkaClusterSpec,
    StorageConfig,
)
from kafkaoperator.util import (
    convert_string_to_int32,
    get_broker_config,
    get_broker_image,
    is_ssl_enabled_for_internal_communication,
    merge_labels,
    monitoring_annotations,
    parse_properties_format,
    string_slice_remove,
)


def test_parse_properties_format():
    test_prop = """
broker.id=1
advertised.listener=broker-1:29092
empty.config=
"""
    props = parse_properties_format(test_prop)
    assert props["broker.id"] == "1"
    assert props["advertised.listener"] == "broker-1:29092"
    assert props["empty.config"] == ""


def test_parse_properties_ignores_lines_without_key():
    props = parse_properties_format("no equals here\n  =value\n a = b = c \n")
    assert props == {"a": "b = c"}


def test_merge_labels_updates_in_place():
    base = {"app": "kafka"}
    result = merge_labels(base, {"brokerId": "0"})
    assert result is base
    assert base == {"app": "kafka", "brokerId": "0"}


def test_merge_labels_none():
    assert merge_labels(None, {"app": "kafka"}) == {"app": "kafka"}


def test_monitoring_annotations():
    annotations = monitoring_annotations(65)
    assert annotations["prometheus.io/scrape"] == "true"
    assert annotations["prometheus.io/port"] == "A"


@pytest.mark.parametrize(
    "text,expected",
    [("42", 42), ("-7", -7), ("+3", 3), ("abc", -1), (" 1", -1), ("1_0", -1), ("", -1)],
)
def test_convert_string_to_int32(text, expected):
    assert convert_string_to_int32(text) == expected


def test_convert_string_to_int32_range():
    assert convert_string_to_int32(str(2**31 - 1)) == 2**31 - 1
    assert convert_string_to_int32(str(2**31)) == -1
    assert convert_string_to_int32(str(-(2**31))) == -(2**31)


def test_ssl_enabled():
    plain = InternalListener(type="plaintext", name="internal", container_port=9092)
    ssl = InternalListener(type="SSL", name="secure", container_port=9093)
    assert is_ssl_enabled_for_internal_communication([plain, ssl]) is True
    assert is_ssl_enabled_for_internal_communication([plain]) is False
    assert is_ssl_enabled_for_internal_communication([]) is False


def test_string_slice_remove():
    assert string_slice_remove(["a", "b", "c"], "b") == ["a", "c"]
    assert string_slice_remove(["a"], "z") == ["a"]


def test_get_broker_config_without_group_returns_own():
    own = BrokerConfig(image="own")
    broker = Broker(id=0, broker_config=own)
    assert get_broker_config(broker, KafkaClusterSpec()) is own


def test_get_broker_config_merges_group():
    spec = KafkaClusterSpec(
        broker_config_groups={
            "default": BrokerConfig(image="group", storage_configs=[StorageConfig("/data")])
        }
    )
    broker = Broker(id=1, broker_config_group="default", broker_config=BrokerConfig(image="own"))
    merged = get_broker_config(broker, spec)
    assert merged.image == "own"
    assert merged.storage_configs == [StorageConfig("/data")]
    assert broker.broker_config.storage_configs == []


def test_get_broker_config_group_only():
    spec = KafkaClusterSpec(broker_config_groups={"g": BrokerConfig(config="x=1")})
    merged = get_broker_config(Broker(id=2, broker_config_group="g"), spec)
    assert merged == BrokerConfig(config="x=1")


def test_get_broker_config_missing_group():
    merged = get_broker_config(Broker(id=2, broker_config_group="missing"), KafkaClusterSpec())
    assert merged == BrokerConfig()


def test_get_broker_image():
    assert get_broker_image(BrokerConfig(image="mine"), "cluster") == "mine"
    assert get_broker_image(BrokerConfig(), "cluster") == "cluster"
"""Small helpers shared by the resource builders."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .cluster import Broker, BrokerConfig, InternalListener, KafkaClusterSpec

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def merge_labels(l: dict[str, str] | None, l2: dict[str, str]) -> dict[str, str]:
    """Update ``l`` (or a new dict if it is None) with ``l2`` and return it."""
    if l is None:
        l = {}
    l.update(l2)
    return l


def monitoring_annotations(port: int) -> dict[str, str]:
    """Prometheus scrape annotations; the port is written as the character with that code point."""
    return {
        "prometheus.io/scrape": "true",
        "prometheus.io/port": chr(port),
    }


def convert_string_to_int32(s: str) -> int:
    """Parse a decimal 32-bit integer, returning -1 if it cannot be parsed."""
    if not _DECIMAL.fullmatch(s):
        return -1
    value = int(s)
    if not _INT32_MIN <= value <= _INT32_MAX:
        return -1
    return value


def is_ssl_enabled_for_internal_communication(listeners: Iterable[InternalListener]) -> bool:
    """Whether any internal listener is of type ssl."""
    return any(listener.type.lower() == "ssl" for listener in listeners)


def string_slice_remove(items: Iterable[str], s: str) -> list[str]:
    """Return the items without any occurrence of ``s``."""
    return [item for item in items if item != s]


def parse_properties_format(properties: str) -> dict[str, str]:
    """Parse ``key=value`` lines into a dict; lines without a key are ignored."""
    config: dict[str, str] = {}
    for line in properties.split("\n"):
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key:
            config[key] = value.strip()
    return config


def get_broker_config(broker: Broker, cluster_spec: KafkaClusterSpec) -> BrokerConfig | None:
    """Compose the effective config of a broker from its own and its group's settings."""
    if not broker.broker_config_group:
        return broker.broker_config
    base = broker.broker_config if broker.broker_config is not None else BrokerConfig()
    return base.merged_with(cluster_spec.broker_config_groups.get(broker.broker_config_group))


def get_broker_image(broker_config: BrokerConfig, cluster_image: str) -> str:
    """The broker's own image if set, otherwise the cluster image."""
    return broker_config.image or cluster_image
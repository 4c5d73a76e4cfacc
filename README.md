# kafkaoperator

Building blocks for running Apache Kafka clusters on Kubernetes. The package
describes a cluster with dataclasses. From that description it builds the
Kubernetes manifests and the broker configuration as plain dictionaries and
strings. It also talks to Cruise Control for graceful scaling and serves a
validating admission webhook for `KafkaTopic` resources.

## Modules

- `kafkaoperator.cluster` holds the cluster model. `KafkaCluster` contains a
  `KafkaClusterSpec`, which holds the `Broker` list, `BrokerConfig`,
  `ListenersConfig` with `InternalListener` / `ExternalListener` /
  `SSLSecrets`, `StorageConfig`, `CruiseControlConfig`, `MonitoringConfig`
  and `EnvoyConfig`. `BrokerConfig.merged_with(other)` returns a copy in which
  every empty field is filled from `other`.
- `kafkaoperator.util` holds small helpers: `parse_properties_format`,
  `merge_labels`, `get_broker_config` (a broker's own config merged with its
  config group), `get_broker_image`, `convert_string_to_int32` (returns `-1`
  when the input does not parse), `is_ssl_enabled_for_internal_communication`,
  `string_slice_remove` and `monitoring_annotations`.
- `kafkaoperator.templates` builds object metadata with an owner reference to
  the cluster: `object_meta`, `object_meta_with_generated_name`,
  `object_meta_with_annotations`,
  `object_meta_with_generated_name_and_annotations` and
  `object_meta_cluster_scope`. It also holds shared name templates such as
  `ENVOY_SERVICE_NAME`.
- `kafkaoperator.kafka_config` renders broker configuration and the per-broker
  ConfigMap.
- `kafkaoperator.kafka_services` builds `all_broker_service`,
  `headless_service`, `broker_service` and `broker_pvc`.
- `kafkaoperator.cruisecontrol` builds the Cruise Control `config_map` and
  `service`.
- `kafkaoperator.monitoring` builds the JMX exporter config maps for brokers
  (`kafka_jmx_config_map`) and Cruise Control
  (`cruise_control_jmx_config_map`).
- `kafkaoperator.envoy` builds the Envoy bootstrap YAML
  (`generate_envoy_config`), its `config_map`, the `deployment` and the
  `load_balancer` service.
- `kafkaoperator.backoff` provides constant-delay retries through `retry`,
  `ConstantBackoffConfig`, `mark_error_permanent`, `PermanentError` and
  `RetryError`.
- `kafkaoperator.scale` provides the `CruiseControl` REST client.
- `kafkaoperator.webhook` provides `AdmissionHandler`, `not_allowed`,
  `make_server` and the `kafkaoperator-webhook` command.

## Installation

```
pip install kafkaoperator
```

To install the test dependencies as well:

```
pip install "kafkaoperator[test]"
```

## Usage

### Parsing properties

```python
from kafkaoperator.util import parse_properties_format

props = parse_properties_format("""
broker.id=1
advertised.listener=broker-1:29092
empty.config=
""")
assert props == {
    "broker.id": "1",
    "advertised.listener": "broker-1:29092",
    "empty.config": "",
}
```

Lines without `=` are ignored, and so are lines with an empty key. Keys and
values are stripped of surrounding whitespace.

### Generating broker configuration

```python
from kafkaoperator.cluster import (
    Broker, BrokerConfig, InternalListener, KafkaCluster, KafkaClusterSpec, ListenersConfig,
)
from kafkaoperator.kafka_config import generate_broker_config

cluster = KafkaCluster(
    name="kafka",
    namespace="kafka",
    spec=KafkaClusterSpec(
        zk_addresses=["example.zk:2181"],
        listeners_config=ListenersConfig(internal_listeners=[
            InternalListener(type="plaintext", name="plaintext", container_port=9092,
                             used_for_inner_broker_communication=True),
        ]),
        brokers=[Broker(id=0, broker_config=BrokerConfig())],
    ),
)
print(generate_broker_config(cluster, 0, cluster.spec.brokers[0].broker_config, [], ""))
```

The call `generate_broker_config(cluster, broker_id, broker_config,
super_users, load_balancer_ip)` returns one broker's configuration as sorted
`key=value` lines. The operator-generated settings take precedence. These are
the listeners, advertised listeners, ZooKeeper connection, metrics reporter,
`log.dirs` and `super.users`. Read-only settings only add keys that are missing
or empty. A broker's own `read_only_config` takes precedence over the cluster's
`read_only_config`. `broker_config_map(...)` wraps the result in a ConfigMap
manifest named `<cluster>-config-<id>`.

### Scaling with Cruise Control

```python
from kafkaoperator.backoff import ConstantBackoffConfig
from kafkaoperator.scale import CruiseControl

cc = CruiseControl(
    namespace="kafka",
    cluster_name="kafka",
    endpoint="",
    retry_config=ConstantBackoffConfig(delay=10.0, max_retries=5),
    poll_interval=20.0,
)
cc.check_ready()
print(cc.broker_with_least_partitions())
```

When `endpoint` is empty, requests go to
`<cluster>-cruisecontrol-svc.<namespace>.svc.cluster.local:8090`. The default
retry configuration waits 10 seconds and allows 5 retries.

- `check_ready()` raises `CruiseControlNotReadyError` when the analyzer has no
  proposal ready.
- `is_broker_ready(broker_id)` compares the number of brokers with online log
  directories to `broker_id + 1`.
- `broker_with_least_partitions()` returns the id of the broker with the fewest
  replicas.
- `upscale(broker_id)` first waits, with retries, for the broker to appear. It
  then posts `add_broker`, retrying that as well.
- `downsize(broker_id)` posts `remove_broker`, with retries.
- `rebalance()` and `run_preferred_leader_election()` post `rebalance` once.
- `wait_for_task(task_id)` fetches the task list once. It sleeps
  `poll_interval` seconds for every task that is not `Completed` and does not
  poll again.

Every operation checks readiness first. Communication failures and unexpected
responses raise `CruiseControlError`. When retries give up, the steps that are
retried raise `kafkaoperator.backoff.RetryError`.

### Retries

```python
from kafkaoperator.backoff import ConstantBackoffConfig, mark_error_permanent, retry

result = retry(lambda: "done", ConstantBackoffConfig(delay=0.1, max_retries=3))
```

Every exception is treated as transient and retried. If the function raises
`mark_error_permanent(err)`, retrying stops at once. In both cases the final
failure is a `RetryError` whose `last_error` holds the underlying exception.

### Admission webhook

`AdmissionHandler(topic_validator)` answers admission reviews. For a request
of kind `KafkaTopic` it calls `topic_validator(topic_dict)` and returns that
response. For any other kind it rejects the request. `handler.serve(body,
content_type)` handles one HTTP body and returns `(status, reply_bytes)`:

- 400 for an empty body
- 415 when the content type is not `application/json`
- 200 otherwise, with the response UID copied from the request

`make_server(handler, host, port, cert_dir)` returns a `ThreadingHTTPServer`
that answers POST requests on `/validate`. When `cert_dir` holds `tls.crt` and
`tls.key`, the server uses TLS.

The command runs such a server:

```
kafkaoperator-webhook --host 0.0.0.0 --port 8443 --cert-dir /path/to/certs
kafkaoperator-webhook --help
```

## What this package does not do

- It does not talk to the Kubernetes API. The manifests are returned as
  dictionaries; applying them, watching resources and running a reconcile loop
  are left to the caller.
- It contains no Kafka admin client. Nothing here creates topics or reads and
  changes broker configuration on a running cluster.
- The topic validator used by `kafkaoperator-webhook` only checks structure:
  the topic needs `spec.name` and a `spec.clusterRef.name`. It does not check
  that the referenced cluster exists, partition counts or replication factors.
  For such checks, pass your own validator to `AdmissionHandler`.

## Running the tests

```
pip install "kafkaoperator[test]"
pytest
```
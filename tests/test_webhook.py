import json
import threading
import urllib.request

import pytest

from kafkaoperator.webhook import AdmissionHandler, main, make_server, not_allowed


def _topic():
    return {
        "apiVersion": "kafka.banzaicloud.io/v1alpha1",
        "kind": "KafkaTopic",
        "metadata": {"name": "orders", "namespace": "kafka"},
        "spec": {"name": "orders", "partitions": 3, "replicationFactor": 2,
                 "clusterRef": {"name": "kafka"}},
    }


def _review(kind="KafkaTopic", obj=None, uid="abc-123"):
    return {
        "apiVersion": "admission.k8s.io/v1beta1",
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "kafka.banzaicloud.io", "version": "v1alpha1", "kind": kind},
            "namespace": "kafka",
            "name": "orders",
            "operation": "CREATE",
            "object": _topic() if obj is None else obj,
        },
    }


class _Recorder:
    def __init__(self, response):
        self.response = response
        self.topics = []

    def __call__(self, topic):
        self.topics.append(topic)
        return dict(self.response)


def test_not_allowed_carries_message():
    response = not_allowed("nope")
    assert response["allowed"] is False
    assert response["status"]["message"] == "nope"


def test_validate_passes_topic_to_validator():
    recorder = _Recorder({"uid": "", "allowed": True})
    handler = AdmissionHandler(recorder)
    response = handler.validate(_review())
    assert response["allowed"] is True
    assert recorder.topics == [_topic()]


def test_validate_rejects_unexpected_kind():
    recorder = _Recorder({"uid": "", "allowed": True})
    handler = AdmissionHandler(recorder)
    response = handler.validate(_review(kind="Pod"))
    assert response["allowed"] is False
    assert response["status"]["message"] == "Unexpected resource kind: Pod"
    assert recorder.topics == []


def test_validate_rejects_undecodable_object():
    handler = AdmissionHandler(_Recorder({"allowed": True}))
    response = handler.validate(_review(obj=[1, 2]))
    assert response["allowed"] is False


def test_serve_empty_body():
    handler = AdmissionHandler(_Recorder({"allowed": True}))
    assert handler.serve(b"", "application/json") == (400, b"empty body\n")


def test_serve_wrong_content_type():
    handler = AdmissionHandler(_Recorder({"allowed": True}))
    status, body = handler.serve(json.dumps(_review()).encode(), "text/plain")
    assert status == 415
    assert body == b"invalid Content-Type, expect `application/json`\n"


def test_serve_copies_request_uid():
    handler = AdmissionHandler(_Recorder({"uid": "", "allowed": True}))
    status, body = handler.serve(json.dumps(_review(uid="abc-123")).encode(), "application/json")
    assert status == 200
    reply = json.loads(body)
    assert reply["response"]["uid"] == "abc-123"
    assert reply["response"]["allowed"] is True


def test_serve_rejected_response_keeps_validator_message():
    handler = AdmissionHandler(_Recorder(not_allowed("Topic exists")))
    status, body = handler.serve(json.dumps(_review()).encode(), "application/json")
    assert status == 200
    assert json.loads(body)["response"]["status"]["message"] == "Topic exists"


def test_serve_bad_json_is_not_allowed():
    handler = AdmissionHandler(_Recorder({"allowed": True}))
    status, body = handler.serve(b"{not json", "application/json")
    assert status == 200
    response = json.loads(body)["response"]
    assert response["allowed"] is False
    assert response["uid"] == ""


def test_server_answers_validate_requests():
    handler = AdmissionHandler(_Recorder({"uid": "", "allowed": True}))
    server = make_server(handler, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        port = server.server_address[1]
        request = urllib.request.Request(
            f"http://127.0.0.1:{port}/validate",
            data=json.dumps(_review(uid="xyz")).encode(),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(request) as reply:
            payload = json.loads(reply.read())
        assert payload["response"]["uid"] == "xyz"
        assert payload["response"]["allowed"] is True
    finally:
        server.shutdown()
        server.server_close()


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit):
        main(["--port", "not-a-number"])
"""Admission webhook that validates KafkaTopic resources before they are stored."""

from __future__ import annotations

import argparse
import json
import logging
import ssl
from collections.abc import Callable, Sequence
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

_log = logging.getLogger("webhooks")

KAFKA_TOPIC_KIND = "KafkaTopic"
VALIDATE_PATH = "/validate"
CERT_FILE_NAME = "tls.crt"
KEY_FILE_NAME = "tls.key"
DEFAULT_PORT = 443

TopicValidator = Callable[[dict[str, Any]], dict[str, Any]]


def not_allowed(message: str) -> dict[str, Any]:
    """An admission response that rejects the request with ``message``."""
    return {
        "uid": "",
        "allowed": False,
        "status": {"metadata": {}, "message": message},
    }


def _allowed() -> dict[str, Any]:
    return {"uid": "", "allowed": True}


class AdmissionHandler:
    """Turns admission reviews into admission responses."""

    def __init__(self, topic_validator: TopicValidator) -> None:
        self.topic_validator = topic_validator

    def validate(self, review: dict[str, Any]) -> dict[str, Any]:
        """Answer the request held by an admission review."""
        request = review["request"]
        kind = request.get("kind") or {}
        _log.info(
            "AdmissionReview for Kind=%s, Namespace=%s Name=%s UID=%s "
            "patchOperation=%s UserInfo=%s",
            kind,
            request.get("namespace", ""),
            request.get("name", ""),
            request.get("uid", ""),
            request.get("operation", ""),
            request.get("userInfo", {}),
        )
        kind_name = kind.get("kind", "") if isinstance(kind, dict) else ""
        if kind_name == KAFKA_TOPIC_KIND:
            topic = request.get("object")
            if not isinstance(topic, dict):
                _log.error("Could not unmarshal raw object")
                return not_allowed(
                    f"cannot unmarshal {type(topic).__name__} into a {KAFKA_TOPIC_KIND}"
                )
            return dict(self.topic_validator(topic))
        return not_allowed(f"Unexpected resource kind: {kind_name}")

    @staticmethod
    def _decode(body: bytes) -> dict[str, Any]:
        review = json.loads(body)
        if not isinstance(review, dict):
            raise ValueError("admission review must be a JSON object")
        request = review.get("request")
        if not isinstance(request, dict):
            raise ValueError("admission review holds no request")
        return review

    def serve(self, body: bytes, content_type: str) -> tuple[int, bytes]:
        """Handle one HTTP request body, returning the status and the reply body."""
        if not body:
            _log.error("empty body")
            return HTTPStatus.BAD_REQUEST, b"empty body\n"

        if content_type != "application/json":
            _log.error("invalid content type: Content-Type=%s, expect application/json", content_type)
            return (
                HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
                b"invalid Content-Type, expect `application/json`\n",
            )

        review: dict[str, Any] | None = None
        try:
            review = self._decode(body)
        except ValueError as err:
            _log.error("Can't decode body: %s", err)
            response = not_allowed(str(err))
        else:
            response = self.validate(review)

        if review is not None:
            response["uid"] = review["request"].get("uid", "")

        try:
            encoded = json.dumps({"response": response}).encode()
        except (TypeError, ValueError) as err:
            _log.error("Can't encode response: %s", err)
            return (
                HTTPStatus.INTERNAL_SERVER_ERROR,
                f"could not encode response: {err}\n".encode(),
            )
        _log.info("Ready to write response ...")
        return HTTPStatus.OK, encoded


def make_server(
    handler: AdmissionHandler,
    host: str = "",
    port: int = DEFAULT_PORT,
    cert_dir: str | None = None,
) -> ThreadingHTTPServer:
    """An HTTP(S) server answering admission reviews on ``/validate``."""

    class _RequestHandler(BaseHTTPRequestHandler):
        def do_POST(self) -> None:  # noqa: N802 - name fixed by the base class
            if self.path.split("?", 1)[0] != VALIDATE_PATH:
                self._reply(HTTPStatus.NOT_FOUND, b"404 page not found\n")
                return
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            _log.info("%s %s", self.command, self.path)
            status, reply = handler.serve(body, self.headers.get("Content-Type", ""))
            self._reply(status, reply)

        def _reply(self, status: int, body: bytes) -> None:
            content_type = (
                "application/json" if status == HTTPStatus.OK else "text/plain; charset=utf-8"
            )
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            _log.debug(format, *args)

    server = ThreadingHTTPServer((host, port), _RequestHandler)
    if cert_dir:
        directory = Path(cert_dir)
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(directory / CERT_FILE_NAME, directory / KEY_FILE_NAME)
        server.socket = context.wrap_socket(server.socket, server_side=True)
    return server


def _structural_topic_validator(topic: dict[str, Any]) -> dict[str, Any]:
    spec = topic.get("spec")
    if not isinstance(spec, dict) or not spec.get("name"):
        return not_allowed("KafkaTopic has no topic name")
    cluster_ref = spec.get("clusterRef")
    if not isinstance(cluster_ref, dict) or not cluster_ref.get("name"):
        return not_allowed("KafkaTopic does not reference a KafkaCluster")
    return _allowed()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the validating webhook server until interrupted."""
    parser = argparse.ArgumentParser(description="KafkaTopic validating admission webhook")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument(
        "--cert-dir",
        default=None,
        help=f"directory holding {CERT_FILE_NAME} and {KEY_FILE_NAME}",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    server = make_server(
        AdmissionHandler(_structural_topic_validator), args.host, args.port, args.cert_dir
    )
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0
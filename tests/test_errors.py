from __future__ import annotations

from easypanel_gateway.trpc.errors import (
    MAX_RAW_BODY_CHARS,
    UpstreamError,
    normalize_failure,
)


def test_upstream_declared_message_and_status_win() -> None:
    body = {
        "error": {
            "message": "Project not found",
            "code": -32004,
            "data": {"code": "NOT_FOUND", "httpStatus": 404, "path": "projects.inspectProject"},
        }
    }
    info = normalize_failure(procedure="projects.inspectProject", http_status=500, body=body)

    assert info.message == "Project not found"
    assert info.status == 404
    assert info.procedure == "projects.inspectProject"
    assert info.raw_body is not None and '"NOT_FOUND"' in info.raw_body


def test_falls_back_to_transport_status_and_generic_message() -> None:
    info = normalize_failure(procedure="services.app.deploy", http_status=503, body="<html>down</html>")

    assert info.message == "tRPC call failed: services.app.deploy"
    assert info.status == 503
    assert info.raw_body == "<html>down</html>"


def test_non_numeric_declared_status_is_ignored() -> None:
    body = {"error": {"message": "", "data": {"httpStatus": "418"}}}
    info = normalize_failure(procedure="p", http_status=400, body=body)

    assert info.status == 400
    assert info.message == "tRPC call failed: p"


def test_missing_status_defaults_to_500() -> None:
    assert normalize_failure(procedure="p", http_status=0, body=None).status == 500


def test_odd_shapes_never_raise() -> None:
    for body in (None, [], [1, 2], {"error": "boom"}, {"error": {"data": []}}, 42):
        info = normalize_failure(procedure="p", http_status=502, body=body)
        assert info.status == 502


def test_raw_body_is_truncated() -> None:
    info = normalize_failure(procedure="p", http_status=500, body="x" * 2000)
    assert info.raw_body is not None
    assert len(info.raw_body) == MAX_RAW_BODY_CHARS


def test_upstream_error_exposes_info() -> None:
    info = normalize_failure(procedure="auth.getUser", http_status=401, body={})
    err = UpstreamError(info)

    assert str(err) == "tRPC call failed: auth.getUser"
    assert err.status == 401
    assert err.procedure == "auth.getUser"
    assert err.raw_body == "{}"

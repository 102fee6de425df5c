# tests/test_app.py
import io
import json
import pytest
from unittest.mock import MagicMock

from workspace_provisioner.app import create_app, handle_exception
from workspace_provisioner.database import models
from workspace_provisioner.services.exceptions import *

# ===================================================================
#  WSGI 호출 유틸리티
# ===================================================================

def call(app, method, path, body=None, user="alice"):
    payload = json.dumps(body).encode("utf-8") if body is not None else b""
    environ = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "CONTENT_LENGTH": str(len(payload)),
        "wsgi.input": io.BytesIO(payload),
    }
    if user:
        environ["HTTP_X_REMOTE_USER"] = user
    start_response = MagicMock()
    chunks = app(environ, start_response)
    status = start_response.call_args[0][0]
    raw = b"".join(chunks)
    return status, (json.loads(raw) if raw else None)

@pytest.fixture
def app(config, session_factory, owner):
    session = session_factory()
    session.add_all([
        models.PriceMultiplier(id="gpu", multiplier=4.0),
        models.PriceMultiplier(id="compute", multiplier=1.0),
    ])
    session.commit()
    session.close()
    return create_app(config, session_factory)

# ===================================================================
#  테스트 스위트
# ===================================================================
class TestProjectRoutes:
    def test_create_get_and_delete_project(self, app):
        # === Act ===
        status, created = call(app, "POST", "/v1/projects",
                               {"name": "demo", "description": "Demo", "services": ["notebook"]})

        # === Assert ===
        assert status == "201 Created"
        assert created["name"] == "demo"
        assert created["owner"] == "alice"
        assert created["services"] == ["notebook"]

        status, fetched = call(app, "GET", f"/v1/projects/{created['id']}")
        assert status == "200 OK"
        assert fetched["description"] == "Demo"

        status, quotas = call(app, "GET", f"/v1/projects/{created['id']}/quotas")
        assert status == "200 OK"
        assert quotas["storage_bytes_limit"] is not None
        assert quotas["price_multiplier"] == 1.0

        status, _ = call(app, "DELETE", f"/v1/projects/{created['id']}")
        assert status == "204 No Content"
        status, _ = call(app, "GET", f"/v1/projects/{created['id']}")
        assert status == "404 Not Found"

    def test_update_project_services(self, app):
        # === Arrange ===
        _, created = call(app, "POST", "/v1/projects", {"name": "demo"})

        # === Act ===
        status, body = call(app, "PUT", f"/v1/projects/{created['id']}", {"services": ["jobs"]})

        # === Assert ===
        assert status == "200 OK"
        assert body["message"] == "Project updated."
        assert body["project"]["services"] == ["jobs"]

        status, body = call(app, "DELETE", f"/v1/projects/{created['id']}/services/jobs")
        assert status == "200 OK"
        assert body["services"] == []

    def test_list_and_lookup_by_name(self, app, session_factory):
        """본인 소유 프로젝트만 목록에 나오고, 이름으로도 조회되는지 테스트합니다."""
        # === Arrange ===
        session = session_factory()
        session.add(models.User(username="bob", email="bob@example.org", password_hash="x",
                                max_num_projects=10, num_created_projects=0))
        session.commit()
        session.close()
        call(app, "POST", "/v1/projects", {"name": "zeta"})
        call(app, "POST", "/v1/projects", {"name": "alpha"})
        call(app, "POST", "/v1/projects", {"name": "bobs"}, user="bob")

        # === Act ===
        status, listing = call(app, "GET", "/v1/projects")
        by_name_status, by_name = call(app, "GET", "/v1/projects/info/zeta")
        missing_status, _ = call(app, "GET", "/v1/projects/info/nothing_here")

        # === Assert ===
        assert status == "200 OK"
        assert [p["name"] for p in listing["projects"]] == ["alpha", "zeta"]
        assert by_name_status == "200 OK"
        assert by_name["owner"] == "alice"
        assert missing_status == "404 Not Found"

    def test_name_conflict_is_409(self, app):
        call(app, "POST", "/v1/projects", {"name": "demo"})
        status, body = call(app, "POST", "/v1/projects", {"name": "demo"})
        assert status == "409 Conflict"
        assert "demo" in body["error"]

    def test_invalid_name_is_400(self, app):
        status, _ = call(app, "POST", "/v1/projects", {"name": "not valid"})
        assert status == "400 Bad Request"

    def test_missing_actor_is_403(self, app):
        status, _ = call(app, "POST", "/v1/projects", {"name": "demo"}, user=None)
        assert status == "403 Forbidden"

    def test_unknown_route(self, app):
        status, body = call(app, "GET", "/v1/vms")
        assert status == "404 Not Found"
        assert body == {"error": "Not Found"}


class TestOtherRoutes:
    def test_multipliers_are_ordered(self, app):
        status, body = call(app, "GET", "/v1/multipliers")
        assert status == "200 OK"
        assert [m["id"] for m in body["multipliers"]] == ["compute", "gpu"]

    def test_credentials_with_wrong_password(self, app):
        _, created = call(app, "POST", "/v1/projects", {"name": "demo"})
        status, _ = call(app, "POST", f"/v1/projects/{created['id']}/credentials", {"password": "wrong"})
        assert status == "403 Forbidden"

    def test_remote_readme_when_disabled(self, app):
        status, _ = call(app, "POST", "/v1/remote/datasets/abc/readme", {"address": "https://peer"})
        assert status == "503 Service Unavailable"


class TestUserRoutes:
    def test_create_user(self, app):
        status, body = call(app, "POST", "/v1/users",
                            {"username": "carol", "email": "carol@example.org", "password": "pw"}, user=None)
        assert status == "201 Created"
        assert body["username"] == "carol"
        assert "password" not in body

    @pytest.mark.parametrize("body", [
        {"username": "carol", "email": "carol@example.org"},
        {"email": "carol@example.org", "password": "pw"},
        ["carol"],
    ])
    def test_bad_user_payload_is_400(self, app, body):
        """필수 항목이 빠졌거나 객체가 아닌 본문은 500이 아니라 400으로 처리되는지 테스트합니다."""
        status, response = call(app, "POST", "/v1/users", body, user=None)
        assert status == "400 Bad Request"
        assert "error" in response

    def test_unknown_user_fields_are_ignored(self, app):
        status, body = call(app, "POST", "/v1/users",
                            {"username": "carol", "email": "carol@example.org", "password": "pw", "is_admin": True},
                            user=None)
        assert status == "201 Created"
        assert body["username"] == "carol"


class TestHandleException:
    def test_activation_failure_carries_tag(self):
        status, body = handle_exception(ServiceActivationFailed(models.ServiceTag.SERVING, RuntimeError("down")))
        assert status == "500 Internal Server Error"
        assert "serving" in json.loads(body)["error"]

    def test_communication_failure_is_502(self):
        status, _ = handle_exception(CommunicationFailure("https://peer", IOError("refused")))
        assert status == "502 Bad Gateway"

# tests/services/test_activation_registry.py
import threading
import pytest
from unittest.mock import MagicMock

from workspace_provisioner.database import models
from workspace_provisioner.database.models import ServiceTag
from workspace_provisioner.services.activation_registry import (
    ACTIVATOR_CLASSES, ActivationGroup, ServiceActivationRegistry, ServiceActivator
)
from workspace_provisioner.services.collaborators import IDistributedFileSystem
from workspace_provisioner.services.exceptions import ServiceActivationFailed
from workspace_provisioner.services.filesystem_service import FilesystemSession, FilesystemSessions

# ===================================================================
#  테스트를 위한 가짜 객체 및 Fixture 설정
# ===================================================================

class FakeActivator(ServiceActivator):
    """activate가 호출되면 기록만 하거나, 지정된 오류를 발생시키는 가짜 활성화 구현."""
    def __init__(self, tag, error=None, wait_for=None):
        super().__init__(config=None)
        self.tag = tag
        self.error = error
        self.wait_for = wait_for
        self.activated = threading.Event()
        self.deactivated = False

    def activate(self, project, actor, sessions):
        if self.wait_for is not None:
            self.wait_for.wait(timeout=5)
        if self.error:
            raise self.error
        self.activated.set()

    def deactivate(self, project, actor, sessions):
        if self.error:
            raise self.error
        self.deactivated = True

@pytest.fixture
def sessions() -> FilesystemSessions:
    return FilesystemSessions(
        admin=FilesystemSession("hdfs", MagicMock(spec=IDistributedFileSystem)),
        user=FilesystemSession("demo__alice", MagicMock(spec=IDistributedFileSystem)),
    )

@pytest.fixture
def project() -> models.Project:
    return models.Project(id=1, name="demo")

@pytest.fixture
def actor() -> models.User:
    return models.User(id=1, username="alice")

def make_registry(*activators) -> ServiceActivationRegistry:
    return ServiceActivationRegistry({a.tag: a for a in activators})

# ===================================================================
#  ServiceActivationRegistry 테스트 스위트
# ===================================================================
class TestRegistry:
    def test_default_registry_covers_every_tag(self, config):
        # === Act ===
        registry = ServiceActivationRegistry.default(config)

        # === Assert ===
        assert set(registry.tags) == set(ServiceTag)
        assert len(ACTIVATOR_CLASSES) == len(ServiceTag)

    def test_unknown_tag_is_reported_with_its_tag(self):
        """등록되지 않은 태그는 해당 태그가 담긴 ServiceActivationFailed로 보고되는지 테스트합니다."""
        registry = make_registry(FakeActivator(ServiceTag.NOTEBOOK))

        with pytest.raises(ServiceActivationFailed) as exc_info:
            registry.activator_for(ServiceTag.SERVING)
        assert exc_info.value.tag == ServiceTag.SERVING
        assert isinstance(exc_info.value.cause, KeyError)

    def test_deactivate_wraps_errors(self, project, actor, sessions):
        # === Arrange ===
        registry = make_registry(FakeActivator(ServiceTag.JOBS, error=RuntimeError("scheduler down")))

        # === Act & Assert ===
        with pytest.raises(ServiceActivationFailed) as exc_info:
            registry.deactivate(ServiceTag.JOBS, project, actor, sessions)
        assert exc_info.value.tag == ServiceTag.JOBS
        assert "scheduler down" in str(exc_info.value)

    def test_notebook_activator_creates_dataset_with_readme(self, config, project, actor, sessions):
        # === Arrange ===
        registry = ServiceActivationRegistry.default(config)

        # === Act ===
        registry.activate(ServiceTag.NOTEBOOK, project, actor, sessions)

        # === Assert ===
        sessions.user.handle.mkdirs.assert_called_once_with("/Projects/demo/Jupyter")
        sessions.user.handle.write_text.assert_called_once()
        assert sessions.user.handle.write_text.call_args[0][0] == "/Projects/demo/Jupyter/README.md"

    def test_dependency_management_keeps_existing_requirements(self, config, project, actor, sessions):
        """requirements.txt가 이미 있으면 덮어쓰지 않는지 테스트합니다."""
        # === Arrange ===
        registry = ServiceActivationRegistry.default(config)
        sessions.user.handle.exists.return_value = True

        # === Act ===
        registry.activate(ServiceTag.DEPENDENCY_MANAGEMENT, project, actor, sessions)

        # === Assert ===
        sessions.user.handle.write_text.assert_not_called()

    def test_deactivate_removes_dataset_with_admin_session(self, config, project, actor, sessions):
        # === Arrange ===
        backend = MagicMock()
        registry = ServiceActivationRegistry.default(config, {ServiceTag.SERVING: backend})

        # === Act ===
        registry.deactivate(ServiceTag.SERVING, project, actor, sessions)

        # === Assert ===
        backend.disable.assert_called_once_with(project)
        sessions.admin.handle.rm.assert_called_once_with("/Projects/demo/Models", recursive=True)
        sessions.user.handle.rm.assert_not_called()

    def test_failed_backend_removes_created_dataset(self, config, project, actor, sessions):
        """backend 활성화가 실패하면 이번 호출에서 만든 디렉토리를 지우고 원래 오류를 올리는지 테스트합니다."""
        # === Arrange ===
        backend = MagicMock()
        backend.enable.side_effect = RuntimeError("serving backend down")
        registry = ServiceActivationRegistry.default(config, {ServiceTag.SERVING: backend})

        # === Act & Assert ===
        with pytest.raises(RuntimeError, match="serving backend down"):
            registry.activate(ServiceTag.SERVING, project, actor, sessions)
        sessions.admin.handle.rm.assert_called_once_with("/Projects/demo/Models", recursive=True)

    def test_cleanup_failure_keeps_original_error(self, config, project, actor, sessions, caplog):
        # === Arrange ===
        backend = MagicMock()
        backend.enable.side_effect = RuntimeError("serving backend down")
        sessions.admin.handle.rm.side_effect = IOError("namenode unreachable")
        registry = ServiceActivationRegistry.default(config, {ServiceTag.SERVING: backend})

        # === Act & Assert ===
        with pytest.raises(RuntimeError, match="serving backend down"):
            registry.activate(ServiceTag.SERVING, project, actor, sessions)
        assert "namenode unreachable" in caplog.text

    def test_failed_dependency_management_removes_new_requirements(self, config, project, actor, sessions):
        # === Arrange ===
        backend = MagicMock()
        backend.enable.side_effect = RuntimeError("environment service down")
        sessions.user.handle.exists.return_value = False
        registry = ServiceActivationRegistry.default(config, {ServiceTag.DEPENDENCY_MANAGEMENT: backend})

        # === Act & Assert ===
        with pytest.raises(RuntimeError):
            registry.activate(ServiceTag.DEPENDENCY_MANAGEMENT, project, actor, sessions)
        sessions.admin.handle.rm.assert_called_once_with("/Projects/demo/Resources/requirements.txt", recursive=True)

# ===================================================================
#  ActivationGroup 테스트 스위트
# ===================================================================
class TestActivationGroup:
    def test_join_succeeds_when_all_succeed(self, project, actor, sessions):
        # === Arrange ===
        notebook, jobs = FakeActivator(ServiceTag.NOTEBOOK), FakeActivator(ServiceTag.JOBS)
        registry = make_registry(notebook, jobs)

        # === Act ===
        with ActivationGroup(registry, 2) as group:
            group.dispatch_all([ServiceTag.NOTEBOOK, ServiceTag.JOBS], project, actor, sessions)
            handles = group.join()

        # === Assert ===
        assert [h.tag for h in handles] == [ServiceTag.NOTEBOOK, ServiceTag.JOBS]
        assert all(h.done() and h.succeeded for h in handles)
        assert set(group.activated_tags()) == {ServiceTag.NOTEBOOK, ServiceTag.JOBS}

    def test_join_waits_for_slow_sibling_and_attributes_failure(self, project, actor, sessions):
        """
        한 활성화가 먼저 실패해도 나머지가 끝날 때까지 기다리고,
        오류는 실패한 서비스 태그에 귀속되는지 테스트합니다.
        """
        # === Arrange ===
        release = threading.Event()
        slow = FakeActivator(ServiceTag.NOTEBOOK, wait_for=release)
        failing = FakeActivator(ServiceTag.SERVING, error=RuntimeError("serving backend down"))
        registry = make_registry(slow, failing)

        # === Act ===
        with ActivationGroup(registry, 2) as group:
            group.dispatch(ServiceTag.NOTEBOOK, project, actor, sessions)
            failing_handle = group.dispatch(ServiceTag.SERVING, project, actor, sessions)
            failing_handle.future.exception(timeout=5)
            release.set()
            with pytest.raises(ServiceActivationFailed) as exc_info:
                group.join()

        # === Assert ===
        assert exc_info.value.tag == ServiceTag.SERVING
        assert slow.activated.is_set()
        assert all(h.done() for h in group.handles)
        assert group.activated_tags() == [ServiceTag.NOTEBOOK]

    def test_already_enabled_tag_is_noop(self, project, actor, sessions):
        """이미 활성화된 서비스는 활성화를 호출하지 않고 성공하며, 롤백 대상에서도 빠지는지 테스트합니다."""
        # === Arrange ===
        notebook = FakeActivator(ServiceTag.NOTEBOOK)
        registry = make_registry(notebook)
        project.enable(ServiceTag.NOTEBOOK)

        # === Act ===
        with ActivationGroup(registry, 1) as group:
            handle = group.dispatch(ServiceTag.NOTEBOOK, project, actor, sessions)
            group.join()

        # === Assert ===
        assert handle.noop
        assert handle.succeeded
        assert not notebook.activated.is_set()
        assert group.activated_tags() == []

    def test_unknown_tag_fails_at_join(self, project, actor, sessions):
        registry = make_registry(FakeActivator(ServiceTag.NOTEBOOK))

        with ActivationGroup(registry, 1) as group:
            handle = group.dispatch(ServiceTag.STREAMING, project, actor, sessions)
            with pytest.raises(ServiceActivationFailed) as exc_info:
                group.join()

        assert exc_info.value.tag == ServiceTag.STREAMING
        assert not handle.succeeded
        assert isinstance(handle.exception(), ServiceActivationFailed)

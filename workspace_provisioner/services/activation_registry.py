import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional

from workspace_provisioner.database import models
from workspace_provisioner.database.models import ServiceTag
from workspace_provisioner.services.collaborators import IServiceBackend
from workspace_provisioner.services.exceptions import ServiceActivationFailed
from workspace_provisioner.services.filesystem_service import FilesystemSessions, project_path
from workspace_provisioner.utils.readme_generator import generate_readme

LOGGER = logging.getLogger(__name__)


class ServiceActivator:
    """
    서비스 태그 하나의 프로젝트 범위 자원을 만들고 지우는 활성화 루틴의 기본 클래스.

    datasets에 나열된 디렉토리를 프로젝트 아래에 만들고, backend가 주입되어 있으면
    하위 서비스 쪽 활성화도 요청합니다. activate는 워커 스레드에서 실행되므로
    DB 세션을 건드리지 않습니다.
    """
    tag: ServiceTag = None
    datasets = ()

    def __init__(self, config, backend: Optional[IServiceBackend] = None):
        self.config = config
        self.backend = backend

    def _dataset_path(self, project: models.Project, name: str) -> str:
        return project_path(self.config.PROJECTS_DIR, project.name, name)

    def activate(self, project: models.Project, actor: models.User, sessions: FilesystemSessions):
        """
        서비스 디렉토리를 만들고 backend 활성화를 요청합니다.

        도중에 실패하면 이번 호출에서 만든 디렉토리를 지운 뒤 원래 오류를 다시 발생시킵니다.
        정리 실패는 기록만 합니다.
        """
        created = []
        try:
            for name in self.datasets:
                path = self._dataset_path(project, name)
                created.append(path)
                sessions.user.handle.mkdirs(path)
                sessions.user.handle.write_text(f"{path}/README.md", generate_readme(name, project.name))
            if self.backend:
                self.backend.enable(project, actor)
        except Exception:
            self._discard(sessions, created)
            raise
        LOGGER.info("Service '%s' activated for project '%s'", self.tag.value, project.name)

    def _discard(self, sessions: FilesystemSessions, paths: List[str]):
        for path in reversed(paths):
            try:
                sessions.admin.handle.rm(path, recursive=True)
            except Exception as e:
                LOGGER.error("Failed to remove '%s' after activation of service '%s' failed: %s",
                             path, self.tag.value, e)

    def deactivate(self, project: models.Project, actor: models.User, sessions: FilesystemSessions):
        if self.backend:
            self.backend.disable(project)
        for name in self.datasets:
            sessions.admin.handle.rm(self._dataset_path(project, name), recursive=True)
        LOGGER.info("Service '%s' deactivated for project '%s'", self.tag.value, project.name)


class NotebookActivator(ServiceActivator):
    tag = ServiceTag.NOTEBOOK
    datasets = ("Jupyter",)


class StreamingActivator(ServiceActivator):
    # 디렉토리 없이 브로커 쪽 토픽/ACL 설정만 backend에 위임합니다.
    tag = ServiceTag.STREAMING


class ServingActivator(ServiceActivator):
    tag = ServiceTag.SERVING
    datasets = ("Models",)


class JobsActivator(ServiceActivator):
    tag = ServiceTag.JOBS
    datasets = ("Logs",)


class DependencyManagementActivator(ServiceActivator):
    """프로젝트 Python 환경의 의존성 목록 파일(Resources/requirements.txt)을 관리합니다."""
    tag = ServiceTag.DEPENDENCY_MANAGEMENT
    requirements_file = "Resources/requirements.txt"

    def activate(self, project, actor, sessions):
        path = self._dataset_path(project, self.requirements_file)
        created = not sessions.user.handle.exists(path)
        if created:
            sessions.user.handle.write_text(path, "")
        try:
            super().activate(project, actor, sessions)
        except Exception:
            if created:
                self._discard(sessions, [path])
            raise

    def deactivate(self, project, actor, sessions):
        super().deactivate(project, actor, sessions)
        sessions.admin.handle.rm(self._dataset_path(project, self.requirements_file))


ACTIVATOR_CLASSES = (
    NotebookActivator,
    StreamingActivator,
    ServingActivator,
    JobsActivator,
    DependencyManagementActivator,
)


class ActivationHandle:
    """진행 중이거나 끝난 서비스 활성화 하나. 결과는 항상 원래의 서비스 태그로 귀속됩니다."""

    def __init__(self, tag: ServiceTag, future: Future, noop: bool = False):
        self.tag = tag
        self.future = future
        # 이미 활성화되어 있어서 아무 일도 하지 않은 핸들
        self.noop = noop

    def done(self) -> bool:
        return self.future.done()

    @property
    def succeeded(self) -> bool:
        return self.future.done() and not self.future.cancelled() and self.future.exception() is None

    def exception(self) -> Optional[BaseException]:
        if not self.future.done():
            return None
        return self.future.exception()


class ServiceActivationRegistry:
    def __init__(self, activators: Dict[ServiceTag, ServiceActivator]):
        """
        ServiceActivationRegistry를 초기화합니다.

        Args:
            activators: 서비스 태그 -> 활성화 구현. 태그 값으로 직접 선택합니다.
        """
        self._activators = dict(activators)

    @classmethod
    def default(cls, config, backends: Optional[Dict[ServiceTag, IServiceBackend]] = None):
        """모든 서비스 태그에 기본 활성화 구현을 등록한 레지스트리를 만듭니다."""
        backends = backends or {}
        return cls({
            activator_cls.tag: activator_cls(config, backends.get(activator_cls.tag))
            for activator_cls in ACTIVATOR_CLASSES
        })

    @property
    def tags(self) -> List[ServiceTag]:
        return list(self._activators)

    def activator_for(self, tag: ServiceTag) -> ServiceActivator:
        try:
            return self._activators[tag]
        except KeyError as e:
            raise ServiceActivationFailed(tag, KeyError(f"No activator registered for '{tag}'")) from e

    def activate(self, tag: ServiceTag, project: models.Project, actor: models.User, sessions: FilesystemSessions):
        self.activator_for(tag).activate(project, actor, sessions)

    def deactivate(self, tag: ServiceTag, project: models.Project, actor: models.User, sessions: FilesystemSessions):
        """
        서비스 하나를 동기적으로 비활성화합니다.

        Raises:
            ServiceActivationFailed: 비활성화 중 오류가 발생했을 때. 실패한 태그가 담깁니다.
        """
        try:
            self.activator_for(tag).deactivate(project, actor, sessions)
        except ServiceActivationFailed:
            raise
        except Exception as e:
            raise ServiceActivationFailed(tag, e) from e


class ActivationGroup:
    """
    서비스 활성화를 한꺼번에 내보내고(fan-out) 한꺼번에 기다리는(fan-in) 그룹.

    with 블록을 벗어날 때 모든 워커가 끝날 때까지 기다리므로, 실패한 호출 뒤에
    주인 없는 작업이 남지 않습니다. 이미 실행 중인 형제 작업을 취소하지는 않습니다.
    """

    def __init__(self, registry: ServiceActivationRegistry, size: int):
        self.registry = registry
        self.handles: List[ActivationHandle] = []
        self._executor = ThreadPoolExecutor(max_workers=max(1, size), thread_name_prefix="activation")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._executor.shutdown(wait=True)
        return False

    def dispatch(self, tag: ServiceTag, project: models.Project, actor: models.User,
                 sessions: FilesystemSessions) -> ActivationHandle:
        """
        서비스 하나의 활성화를 워커 스레드로 보냅니다.

        이미 활성화된 태그는 아무것도 하지 않고 성공하는 핸들을 반환합니다.
        이 검사는 호출 스레드에서 합니다. (DB 세션은 호출 스레드에서만 사용)
        """
        if tag in project.enabled_services:
            LOGGER.debug("Service '%s' already enabled for project '%s'", tag.value, project.name)
            handle = ActivationHandle(tag, self._executor.submit(lambda: None), noop=True)
        else:
            future = self._executor.submit(self.registry.activate, tag, project, actor, sessions)
            handle = ActivationHandle(tag, future)
        self.handles.append(handle)
        return handle

    def dispatch_all(self, tags: Iterable[ServiceTag], project, actor, sessions) -> List[ActivationHandle]:
        return [self.dispatch(tag, project, actor, sessions) for tag in tags]

    def join(self) -> List[ActivationHandle]:
        """
        내보낸 모든 활성화가 끝날 때까지 기다립니다.

        Returns:
            모든 핸들 (모두 성공한 경우).

        Raises:
            ServiceActivationFailed: 하나 이상 실패했을 때. 완료 순서상 첫 번째 실패의 태그와 원인을 담습니다.
        """
        by_future = {handle.future: handle for handle in self.handles}
        first_failure = None
        for future in as_completed(by_future):
            handle = by_future[future]
            error = future.exception()
            if error is None:
                continue
            LOGGER.error("Activation of service '%s' failed: %s", handle.tag.value, error)
            if first_failure is None:
                first_failure = handle

        if first_failure is not None:
            cause = first_failure.exception()
            if isinstance(cause, ServiceActivationFailed):
                raise cause
            raise ServiceActivationFailed(first_failure.tag, cause) from cause
        return list(self.handles)

    def activated_tags(self) -> List[ServiceTag]:
        """이 그룹에서 실제로 새로 활성화에 성공한 태그. 롤백 대상입니다."""
        return [handle.tag for handle in self.handles if handle.succeeded and not handle.noop]

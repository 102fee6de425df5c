import logging
import posixpath
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, NamedTuple

from workspace_provisioner.services.collaborators import IDistributedFileSystem

LOGGER = logging.getLogger(__name__)


def project_username(project_name: str, username: str) -> str:
    """프로젝트 범위의 파일시스템 사용자 이름. (예: 'demo__alice')"""
    return f"{project_name}__{username}"


def project_path(projects_dir: str, project_name: str, *parts: str) -> str:
    return posixpath.join(projects_dir, project_name, *parts)


@dataclass
class FilesystemSession:
    """(소유자, 클라이언트 핸들) 쌍. 요청마다 새로 열고, 정확히 한 번 닫습니다."""
    owner: str
    handle: IDistributedFileSystem
    closed: bool = False


class FilesystemSessions(NamedTuple):
    """한 요청에서 쓰는 관리자 세션과 프로젝트 사용자 세션."""
    admin: FilesystemSession
    user: FilesystemSession


class FilesystemSessionManager:
    def __init__(self, config, client_factory: Callable[[str], IDistributedFileSystem]):
        """
        FilesystemSessionManager를 초기화합니다.

        Args:
            config: DFS_SUPERUSER 등을 담은 설정 객체.
            client_factory: 사용자 이름을 받아 그 권한으로 연결된 파일시스템 클라이언트를 반환하는 함수.
        """
        self.config = config
        self.client_factory = client_factory
        self._lock = threading.Lock()
        self._open_count = 0

    @property
    def open_count(self) -> int:
        """아직 닫히지 않은 세션 수."""
        return self._open_count

    def open_admin(self) -> FilesystemSession:
        return self.open_as(self.config.DFS_SUPERUSER)

    def open_as(self, identity: str) -> FilesystemSession:
        handle = self.client_factory(identity)
        with self._lock:
            self._open_count += 1
        LOGGER.debug("Opened filesystem session for '%s'", identity)
        return FilesystemSession(owner=identity, handle=handle)

    def close(self, session: FilesystemSession):
        """
        세션을 닫습니다.

        이미 닫힌 세션은 경고만 남기고 무시합니다. 클라이언트 종료 중 발생한 오류는
        기록만 하고 전파하지 않습니다. 이 메서드는 주로 오류 처리 경로에서 호출되기 때문입니다.
        """
        if session.closed:
            LOGGER.warning("Filesystem session for '%s' was already closed", session.owner)
            return
        session.closed = True
        with self._lock:
            self._open_count -= 1
        try:
            session.handle.close()
        except Exception as e:
            LOGGER.error("Failed to close filesystem session for '%s': %s", session.owner, e)

    @contextmanager
    def admin_session(self):
        session = self.open_admin()
        try:
            yield session
        finally:
            self.close(session)

    @contextmanager
    def session_as(self, identity: str):
        session = self.open_as(identity)
        try:
            yield session
        finally:
            self.close(session)

    @contextmanager
    def project_sessions(self, identity: str):
        """관리자 세션과 identity 세션을 함께 열고, 어떤 경로로 빠져나가든 둘 다 닫습니다."""
        with self.admin_session() as admin, self.session_as(identity) as user:
            yield FilesystemSessions(admin=admin, user=user)

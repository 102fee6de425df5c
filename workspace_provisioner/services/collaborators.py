"""
프로비저너가 의존하는 외부 협력자(collaborator)의 계약을 정의합니다.

리포지토리 인터페이스와 마찬가지로, 서비스는 이 추상 클래스에만 의존하고
실제 구현은 진입점(app.py)이나 테스트에서 주입합니다.
"""
from abc import ABC, abstractmethod
from typing import List

from workspace_provisioner.database import models


class IDistributedFileSystem(ABC):
    """특정 사용자 권한으로 연결된 분산 파일시스템 클라이언트 하나."""

    @abstractmethod
    def mkdirs(self, path: str) -> None:
        """경로의 디렉토리를 (상위 디렉토리 포함) 생성합니다. 이미 있으면 무시합니다."""
        pass

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def listdir(self, path: str) -> List[str]:
        pass

    @abstractmethod
    def rm(self, path: str, recursive: bool = False) -> bool:
        """경로를 삭제합니다. 삭제했으면 True, 원래 없었으면 False."""
        pass

    @abstractmethod
    def close(self) -> None:
        """연결을 닫습니다. 닫힌 클라이언트로는 더 이상 작업할 수 없습니다."""
        pass


class IAuthenticator(ABC):
    @abstractmethod
    def verify_password(self, user: models.User, password: str) -> bool:
        """사용자의 비밀번호가 맞는지 확인합니다."""
        pass


class INotifier(ABC):
    @abstractmethod
    def notify(self, identity: str, subject: str, body: str) -> None:
        """
        사용자에게 메시지를 보냅니다.

        호출하는 쪽은 실패를 치명적인 오류로 다루지 않습니다. (best-effort)
        """
        pass


class IProjectSeeder(ABC):
    @abstractmethod
    def seed(self, project: models.Project, owner: models.User, sessions) -> None:
        """새 프로젝트의 기본 디렉토리와 템플릿 파일을 만듭니다."""
        pass


class IServiceBackend(ABC):
    """서비스 태그 하나에 대응하는 하위 서비스(노트북 서버, 스트리밍 브로커 등)의 연동 지점."""

    @abstractmethod
    def enable(self, project: models.Project, actor: models.User) -> None:
        pass

    @abstractmethod
    def disable(self, project: models.Project) -> None:
        pass

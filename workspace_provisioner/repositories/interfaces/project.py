from abc import ABC, abstractmethod
from typing import List, Optional
from workspace_provisioner.database import models

class IProjectRepository(ABC):
    @abstractmethod
    def create(self, project_model: models.Project) -> models.Project:
        """새로운 프로젝트를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        """고유 ID로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Project]:
        """이름으로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: int) -> List[models.Project]:
        """특정 사용자가 소유한 프로젝트 목록을 조회합니다."""
        pass

    @abstractmethod
    def save(self, project: models.Project) -> models.Project:
        """
        변경된 프로젝트(상태, 설명, 활성화된 서비스 목록 등)를 저장합니다.

        한 번의 호출은 하나의 레코드 단위로 원자적으로 커밋됩니다.
        """
        pass

    @abstractmethod
    def delete(self, project: models.Project) -> bool:
        """특정 프로젝트와 종속 레코드(쿼터, 서비스, 데이터셋, 인증서)를 삭제합니다."""
        pass

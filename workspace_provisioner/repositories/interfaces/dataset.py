from abc import ABC, abstractmethod
from typing import Optional
from workspace_provisioner.database import models

class IDatasetRepository(ABC):
    @abstractmethod
    def create(self, dataset_model: models.Dataset) -> models.Dataset:
        """새로운 데이터셋 레코드를 생성합니다."""
        pass

    @abstractmethod
    def find_by_id_and_project_id(self, dataset_id: int, project_id: int) -> Optional[models.Dataset]:
        """특정 프로젝트에 속한 데이터셋을 ID로 조회합니다."""
        pass

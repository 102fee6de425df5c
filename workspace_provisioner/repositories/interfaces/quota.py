from abc import ABC, abstractmethod
from typing import List, Optional
from workspace_provisioner.database import models

class IQuotaRepository(ABC):
    @abstractmethod
    def create(self, quota_model: models.ProjectQuota) -> models.ProjectQuota:
        """프로젝트의 쿼터 레코드를 생성합니다."""
        pass

    @abstractmethod
    def find_by_project_id(self, project_id: int) -> Optional[models.ProjectQuota]:
        """프로젝트 ID로 쿼터 레코드를 조회합니다."""
        pass

    @abstractmethod
    def list_price_multipliers(self) -> List[models.PriceMultiplier]:
        """모든 가격 배수를 ID 순으로 조회합니다."""
        pass

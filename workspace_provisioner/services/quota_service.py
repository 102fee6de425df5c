import logging
from dataclasses import dataclass
from typing import List

from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IProjectRepository, IQuotaRepository
from workspace_provisioner.services.exceptions import ProjectNotFound, QuotaInconsistent

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaSnapshot:
    project_id: int
    storage_bytes_used: int
    storage_bytes_limit: int
    compute_seconds_used: int
    compute_seconds_limit: int
    price_multiplier: float = 1.0

    def to_dict(self):
        return {
            "project_id": self.project_id,
            "storage_bytes_used": self.storage_bytes_used,
            "storage_bytes_limit": self.storage_bytes_limit,
            "compute_seconds_used": self.compute_seconds_used,
            "compute_seconds_limit": self.compute_seconds_limit,
            "price_multiplier": self.price_multiplier,
        }


class QuotaManager:
    def __init__(self, config, project_repo: IProjectRepository, quota_repo: IQuotaRepository):
        self.config = config
        self.project_repo = project_repo
        self.quota_repo = quota_repo

    def assign_default_quotas(self, project: models.Project) -> models.ProjectQuota:
        """새 프로젝트에 설정값의 기본 스토리지/컴퓨트 쿼터를 할당합니다."""
        quota = models.ProjectQuota(
            project_id=project.id,
            storage_bytes_used=0,
            storage_bytes_limit=self.config.DEFAULT_STORAGE_QUOTA_BYTES,
            compute_seconds_used=0,
            compute_seconds_limit=self.config.DEFAULT_COMPUTE_QUOTA_SECONDS,
        )
        return self.quota_repo.create(quota)

    def get_quotas(self, project_id: int) -> QuotaSnapshot:
        """
        프로젝트의 현재 쿼터 사용량과 한도를 조회합니다.

        Raises:
            ProjectNotFound: 해당 ID의 프로젝트를 찾을 수 없을 때.
            QuotaInconsistent: 쿼터 레코드가 없거나 스토리지/컴퓨트 한도 중 하나라도 비어 있을 때.
        """
        if not self.project_repo.find_by_id(project_id):
            raise ProjectNotFound(f"Project with id '{project_id}' not found.")

        quota = self.quota_repo.find_by_project_id(project_id)
        if quota is None or quota.storage_bytes_limit is None or quota.compute_seconds_limit is None:
            LOGGER.warning("Project %s has incomplete quota settings", project_id)
            raise QuotaInconsistent(f"Quota limits of project '{project_id}' are not set.")

        return QuotaSnapshot(
            project_id=project_id,
            storage_bytes_used=quota.storage_bytes_used or 0,
            storage_bytes_limit=quota.storage_bytes_limit,
            compute_seconds_used=quota.compute_seconds_used or 0,
            compute_seconds_limit=quota.compute_seconds_limit,
            price_multiplier=self._quota_price_multiplier(),
        )

    def _quota_price_multiplier(self) -> float:
        # 배수가 등록되어 있지 않으면 1배로 봅니다.
        multiplier_id = self.config.QUOTA_PRICE_MULTIPLIER_ID
        for multiplier in self.quota_repo.list_price_multipliers():
            if multiplier.id == multiplier_id:
                return multiplier.multiplier
        LOGGER.debug("No price multiplier '%s' registered, using 1.0", multiplier_id)
        return 1.0

    def get_price_multipliers(self) -> List[models.PriceMultiplier]:
        """비용 표시에 쓰이는 가격 배수 목록. 프로젝트와 무관합니다."""
        return self.quota_repo.list_price_multipliers()

from abc import ABC, abstractmethod
from typing import Optional
from workspace_provisioner.database import models

class ICertificateRepository(ABC):
    @abstractmethod
    def find_by_user_and_project(self, user_id: int, project_id: int) -> Optional[models.UserCertificate]:
        """사용자와 프로젝트 조합에 발급된 인증서 번들을 조회합니다."""
        pass

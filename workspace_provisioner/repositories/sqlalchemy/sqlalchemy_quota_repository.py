from typing import List, Optional
from sqlalchemy.orm import Session
from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IQuotaRepository

class SqlalchemyQuotaRepository(IQuotaRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, quota_model: models.ProjectQuota) -> models.ProjectQuota:
        self.db.add(quota_model)
        self.db.commit()
        self.db.refresh(quota_model)
        return quota_model

    def find_by_project_id(self, project_id: int) -> Optional[models.ProjectQuota]:
        return self.db.query(models.ProjectQuota).filter(models.ProjectQuota.project_id == project_id).first()

    def list_price_multipliers(self) -> List[models.PriceMultiplier]:
        return self.db.query(models.PriceMultiplier).order_by(models.PriceMultiplier.id.asc()).all()

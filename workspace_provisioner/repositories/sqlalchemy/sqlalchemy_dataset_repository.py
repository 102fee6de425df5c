from typing import Optional
from sqlalchemy.orm import Session
from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IDatasetRepository

class SqlalchemyDatasetRepository(IDatasetRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, dataset_model: models.Dataset) -> models.Dataset:
        self.db.add(dataset_model)
        self.db.commit()
        self.db.refresh(dataset_model)
        return dataset_model

    def find_by_id_and_project_id(self, dataset_id: int, project_id: int) -> Optional[models.Dataset]:
        return self.db.query(models.Dataset).filter(
            models.Dataset.id == dataset_id,
            models.Dataset.project_id == project_id
        ).first()

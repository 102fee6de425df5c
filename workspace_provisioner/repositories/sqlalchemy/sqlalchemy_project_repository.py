from typing import List, Optional
from sqlalchemy.orm import Session
from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IProjectRepository

class SqlalchemyProjectRepository(IProjectRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, project_model: models.Project) -> models.Project:
        self.db.add(project_model)
        self.db.commit()
        self.db.refresh(project_model)
        return project_model

    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(models.Project.id == project_id).first()

    def find_by_name(self, name: str) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(models.Project.name == name).first()

    def list_by_owner(self, owner_id: int) -> List[models.Project]:
        return self.db.query(models.Project).filter(models.Project.owner_id == owner_id).order_by(models.Project.name.asc()).all()

    def save(self, project: models.Project) -> models.Project:
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete(self, project: models.Project) -> bool:
        if project:
            self.db.delete(project)
            self.db.commit()
            return True
        return False

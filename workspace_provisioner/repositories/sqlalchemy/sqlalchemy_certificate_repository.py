from typing import Optional
from sqlalchemy.orm import Session
from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import ICertificateRepository

class SqlalchemyCertificateRepository(ICertificateRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find_by_user_and_project(self, user_id: int, project_id: int) -> Optional[models.UserCertificate]:
        return self.db.query(models.UserCertificate).filter(
            models.UserCertificate.user_id == user_id,
            models.UserCertificate.project_id == project_id
        ).first()

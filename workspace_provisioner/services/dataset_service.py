import logging

from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IDatasetRepository, IProjectRepository
from workspace_provisioner.services.exceptions import DatasetNotFound, DatasetNotPublic, ProjectNotFound

LOGGER = logging.getLogger(__name__)


class DatasetService:
    def __init__(self, project_repo: IProjectRepository, dataset_repo: IDatasetRepository):
        self.project_repo = project_repo
        self.dataset_repo = dataset_repo

    def import_public_dataset(self, dest_project_id: int, source_project_name: str, dataset_id: int,
                              actor: models.User) -> models.Dataset:
        """
        다른 프로젝트의 공개 데이터셋을 대상 프로젝트에 공유 사본으로 추가합니다.

        사본은 공개되지 않으며, 편집은 원래 소유 프로젝트만 할 수 있습니다.

        Raises:
            ProjectNotFound: 대상 프로젝트나 원본 프로젝트를 찾을 수 없을 때.
            DatasetNotFound: 원본 프로젝트에 해당 데이터셋이 없을 때.
            DatasetNotPublic: 원본 데이터셋이 공개되어 있지 않을 때.
        """
        dest_project = self.project_repo.find_by_id(dest_project_id)
        if not dest_project:
            raise ProjectNotFound(f"Project with id '{dest_project_id}' not found.")

        source_project = self.project_repo.find_by_name(source_project_name)
        if not source_project:
            raise ProjectNotFound(f"Project '{source_project_name}' not found.")

        source = self.dataset_repo.find_by_id_and_project_id(dataset_id, source_project.id)
        if not source:
            raise DatasetNotFound(f"Dataset with id '{dataset_id}' not found in project '{source_project_name}'.")
        if not source.public:
            raise DatasetNotPublic(f"Dataset '{source.name}' of project '{source_project_name}' is not public.")

        shared_copy = models.Dataset(
            name=source.name,
            description=source.description,
            public=False,
            shared=True,
            editable="owner-only",
            source_dataset_id=source.id,
            project_id=dest_project.id,
        )
        created = self.dataset_repo.create(shared_copy)
        LOGGER.info("User '%s' imported dataset '%s' from project '%s' into project '%s'",
                    actor.username, source.name, source_project_name, dest_project.name)
        return created

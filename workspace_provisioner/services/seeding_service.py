import logging

from workspace_provisioner.database import models
from workspace_provisioner.services.collaborators import IProjectSeeder
from workspace_provisioner.services.filesystem_service import FilesystemSessions, project_path
from workspace_provisioner.utils.readme_generator import generate_readme

LOGGER = logging.getLogger(__name__)

# 모든 프로젝트에 기본으로 만들어지는 데이터셋
BASELINE_DATASETS = ("Resources", "Experiments")


class BaselineSeeder(IProjectSeeder):
    def __init__(self, config):
        self.config = config

    def seed(self, project: models.Project, owner: models.User, sessions: FilesystemSessions) -> None:
        """
        프로젝트 루트 디렉토리와 기본 데이터셋, 각 데이터셋의 README.md를 생성합니다.

        프로젝트 루트는 관리자 세션으로 만들고, 그 아래 데이터셋은 프로젝트 사용자 세션으로 만듭니다.
        """
        root = project_path(self.config.PROJECTS_DIR, project.name)
        sessions.admin.handle.mkdirs(root)
        sessions.admin.handle.write_text(
            f"{root}/README.md",
            generate_readme(project.name, project.name, project.description),
        )

        for name in BASELINE_DATASETS:
            path = project_path(self.config.PROJECTS_DIR, project.name, name)
            sessions.user.handle.mkdirs(path)
            sessions.user.handle.write_text(f"{path}/README.md", generate_readme(name, project.name))

        LOGGER.info("Seeded baseline datasets for project '%s' (owner=%s)", project.name, owner.username)

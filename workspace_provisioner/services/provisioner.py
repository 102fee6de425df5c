import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from workspace_provisioner.database import models
from workspace_provisioner.database.models import ProjectState, ServiceTag
from workspace_provisioner.repositories.interfaces import IProjectRepository, IUserRepository
from workspace_provisioner.services.activation_registry import ActivationGroup, ServiceActivationRegistry
from workspace_provisioner.services.collaborators import IProjectSeeder
from workspace_provisioner.services.exceptions import (
    AccessDenied, ProjectDefinitionError, ProjectNameConflict, ProjectNotFound,
    QuotaExceeded, ServiceActivationFailed
)
from workspace_provisioner.services.filesystem_service import (
    FilesystemSessionManager, FilesystemSessions, project_path, project_username
)
from workspace_provisioner.services.quota_service import QuotaManager

LOGGER = logging.getLogger(__name__)

PROJECT_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')


@dataclass
class ProjectDefinition:
    name: str
    description: str = ""
    retention_period: int = 0


def normalize_tags(service_tags: Iterable) -> List[ServiceTag]:
    """
    서비스 태그 값(문자열 또는 ServiceTag)을 순서를 유지한 채 중복 없이 ServiceTag 목록으로 바꿉니다.

    Raises:
        ProjectDefinitionError: 알 수 없는 서비스 태그가 있을 때.
    """
    tags = []
    for value in service_tags or ():
        try:
            tag = ServiceTag(value)
        except ValueError as e:
            raise ProjectDefinitionError(f"Unknown service '{value}'.") from e
        if tag not in tags:
            tags.append(tag)
    return tags


class ProjectProvisioner:
    """
    프로젝트 생성/변경/삭제와 서비스 활성화 목록을 관리하는 오케스트레이터.

    한 번의 호출은 호출 스레드에서 하나의 작업 단위로 실행됩니다. 서비스 활성화만
    ActivationGroup을 통해 병렬로 실행되며, 프로젝트 레코드는 호출 스레드에서만 변경합니다.
    """

    def __init__(self, config,
                 project_repo: IProjectRepository,
                 user_repo: IUserRepository,
                 quota_manager: QuotaManager,
                 fs_manager: FilesystemSessionManager,
                 registry: ServiceActivationRegistry,
                 seeder: IProjectSeeder):
        self.config = config
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.quota_manager = quota_manager
        self.fs_manager = fs_manager
        self.registry = registry
        self.seeder = seeder

    # --- Validation ---

    def validate_definition(self, definition: ProjectDefinition):
        name = definition.name or ""
        if not PROJECT_NAME_PATTERN.match(name):
            raise ProjectDefinitionError(
                f"Invalid project name '{name}'. Only letters, digits and underscores are allowed.")
        if len(name) > self.config.MAX_PROJECT_NAME_LENGTH:
            raise ProjectDefinitionError(
                f"Project name '{name}' is longer than {self.config.MAX_PROJECT_NAME_LENGTH} characters.")
        if definition.retention_period is not None and definition.retention_period < 0:
            raise ProjectDefinitionError("Retention period must not be negative.")

    # --- Create ---

    def create_project(self, definition: ProjectDefinition, owner: models.User,
                       service_tags: Iterable = ()) -> models.Project:
        """
        새 프로젝트를 만들고 요청된 서비스를 모두 활성화합니다.

        검증 실패는 아무런 부수 효과 없이 바로 발생합니다. 프로젝트 레코드를 만든 뒤의
        실패(쿼터 할당, 기본 데이터셋 생성, 서비스 활성화)는 cleanup으로 되돌린 다음
        원래의 오류를 그대로 다시 발생시킵니다.

        Args:
            definition: 프로젝트 이름, 설명, 보존 기간.
            owner: 프로젝트 소유자.
            service_tags: 활성화할 서비스 태그 목록.

        Returns:
            요청된 모든 서비스가 활성화된 Project 객체.

        Raises:
            ProjectDefinitionError: 프로젝트 이름이나 서비스 태그가 유효하지 않을 때.
            QuotaExceeded: 소유자가 만들 수 있는 프로젝트 수를 넘었을 때.
            ProjectNameConflict: 같은 이름의 프로젝트가 이미 있을 때.
            ServiceActivationFailed: 서비스 활성화가 실패했을 때. 실패한 서비스 태그가 담깁니다.
        """
        tags = normalize_tags(service_tags)
        self.validate_definition(definition)
        if owner.num_created_projects >= owner.max_num_projects:
            raise QuotaExceeded(
                f"User '{owner.username}' reached the maximum number of projects ({owner.max_num_projects}).")
        if self.project_repo.find_by_name(definition.name):
            raise ProjectNameConflict(f"Project with name '{definition.name}' already exists.")

        project = self.project_repo.create(models.Project(
            name=definition.name,
            description=definition.description or "",
            retention_period=definition.retention_period or self.config.DEFAULT_RETENTION_PERIOD_DAYS,
            state=ProjectState.ACTIVE.value,
            owner_id=owner.id,
        ))
        LOGGER.info("Creating project '%s' (id=%s) for user '%s' with services %s",
                    project.name, project.id, owner.username, [tag.value for tag in tags])

        group = ActivationGroup(self.registry, len(tags))
        try:
            self.quota_manager.assign_default_quotas(project)
            identity = project_username(project.name, owner.username)
            with self.fs_manager.project_sessions(identity) as sessions:
                self.seeder.seed(project, owner, sessions)
                with group:
                    group.dispatch_all(tags, project, owner, sessions)
                    group.join()
        except Exception as e:
            LOGGER.error("Creation of project '%s' failed, cleaning up: %s", project.name, e)
            self.cleanup(project, owner, group.activated_tags())
            raise

        for tag in tags:
            project.enable(tag)
        project = self.project_repo.save(project)

        owner.num_created_projects += 1
        self.user_repo.save(owner)

        LOGGER.info("Project '%s' created", project.name)
        return project

    def cleanup(self, project: models.Project, owner: models.User, activated_tags: List[ServiceTag]):
        """
        생성에 실패한 프로젝트를 되돌립니다.

        이 호출에서 활성화에 성공한 서비스를 비활성화하고, 프로젝트 디렉토리와 레코드를 삭제합니다.
        각 단계의 실패는 기록만 하며, 이 메서드는 예외를 발생시키지 않습니다.
        """
        try:
            identity = project_username(project.name, owner.username)
            with self.fs_manager.project_sessions(identity) as sessions:
                self._deprovision(project, owner, sessions, activated_tags)
                self._remove_project_dir(project, sessions)
        except Exception as e:
            LOGGER.error("Could not clean up filesystem of project '%s': %s", project.name, e)

        try:
            self.project_repo.delete(project)
        except Exception as e:
            LOGGER.error("Could not delete record of project '%s' during cleanup: %s", project.name, e)

    def _deprovision(self, project: models.Project, actor: models.User, sessions: FilesystemSessions,
                     tags: Iterable[ServiceTag]):
        for tag in tags:
            try:
                self.registry.deactivate(tag, project, actor, sessions)
            except ServiceActivationFailed as e:
                LOGGER.error("Rollback of service '%s' for project '%s' failed: %s", tag.value, project.name, e)

    def _remove_project_dir(self, project: models.Project, sessions: FilesystemSessions):
        try:
            sessions.admin.handle.rm(project_path(self.config.PROJECTS_DIR, project.name), recursive=True)
        except Exception as e:
            LOGGER.error("Could not remove directory of project '%s': %s", project.name, e)

    # --- Update ---

    def update_services(self, project: models.Project, new_tags: Iterable, actor: models.User) -> models.Project:
        """
        아직 활성화되지 않은 서비스만 골라 활성화합니다.

        실패하면 이번 호출에서 활성화에 성공한 서비스만 되돌리고 프로젝트는 그대로 둡니다.

        Raises:
            ProjectDefinitionError: 알 수 없는 서비스 태그가 있을 때.
            ServiceActivationFailed: 서비스 활성화가 실패했을 때.
        """
        enabled = project.enabled_services
        delta = [tag for tag in normalize_tags(new_tags) if tag not in enabled]
        if not delta:
            return project

        identity = project_username(project.name, actor.username)
        group = ActivationGroup(self.registry, len(delta))
        with self.fs_manager.project_sessions(identity) as sessions:
            try:
                with group:
                    group.dispatch_all(delta, project, actor, sessions)
                    group.join()
            except Exception as e:
                LOGGER.error("Enabling services %s for project '%s' failed: %s",
                             [tag.value for tag in delta], project.name, e)
                self._deprovision(project, actor, sessions, group.activated_tags())
                raise

        for tag in delta:
            project.enable(tag)
        LOGGER.info("Enabled services %s for project '%s'", [tag.value for tag in delta], project.name)
        return self.project_repo.save(project)

    def disable_services(self, project: models.Project, tags: Iterable, actor: models.User) -> models.Project:
        """
        서비스를 명시적으로 비활성화합니다. 서비스 활성화 목록이 줄어드는 유일한 경로입니다.

        Raises:
            ServiceActivationFailed: 비활성화에 실패한 서비스가 있을 때. 첫 번째 실패를 담습니다.
                성공적으로 비활성화된 서비스는 실패와 무관하게 목록에서 제거되어 저장됩니다.
        """
        enabled = project.enabled_services
        targets = [tag for tag in normalize_tags(tags) if tag in enabled]
        if not targets:
            return project

        first_failure = None
        identity = project_username(project.name, actor.username)
        with self.fs_manager.project_sessions(identity) as sessions:
            for tag in targets:
                try:
                    self.registry.deactivate(tag, project, actor, sessions)
                except ServiceActivationFailed as e:
                    LOGGER.error("Disabling service '%s' for project '%s' failed: %s", tag.value, project.name, e)
                    if first_failure is None:
                        first_failure = e
                    continue
                project.disable(tag)

        project = self.project_repo.save(project)
        if first_failure is not None:
            raise first_failure
        return project

    def update_details(self, project: models.Project, description: Optional[str],
                       retention_period: Optional[int], actor: models.User) -> bool:
        """
        프로젝트 설명과 보존 기간을 변경합니다. None인 값은 변경하지 않습니다.

        Returns:
            실제로 변경된 값이 있으면 True.
        """
        changed = False
        if description is not None and description != project.description:
            project.description = description
            changed = True
        if retention_period is not None and retention_period != project.retention_period:
            if retention_period < 0:
                raise ProjectDefinitionError("Retention period must not be negative.")
            project.retention_period = retention_period
            changed = True

        if changed:
            self.project_repo.save(project)
            LOGGER.info("User '%s' updated details of project '%s'", actor.username, project.name)
        return changed

    # --- Read / Delete ---

    def get_project(self, project_id: int) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFound(f"Project with id '{project_id}' not found.")
        return project

    def get_project_by_name(self, name: str) -> models.Project:
        project = self.project_repo.find_by_name(name)
        if not project:
            raise ProjectNotFound(f"Project with name '{name}' not found.")
        return project

    def list_projects(self, owner: models.User) -> List[models.Project]:
        """사용자가 소유한 프로젝트 목록."""
        return self.project_repo.list_by_owner(owner.id)

    def remove_project(self, actor: models.User, project_id: int):
        """
        프로젝트를 삭제합니다. 되돌릴 수 없습니다.

        서비스 비활성화나 디렉토리 삭제의 실패는 기록만 하고, 프로젝트 레코드는 항상 삭제합니다.

        Raises:
            ProjectNotFound: 해당 ID의 프로젝트를 찾을 수 없을 때.
            AccessDenied: 요청한 사용자가 프로젝트 소유자가 아닐 때.
        """
        project = self.get_project(project_id)
        if project.owner_id != actor.id:
            raise AccessDenied(f"User '{actor.username}' is not the owner of project '{project_id}'.")

        project.state = ProjectState.DELETING.value
        project = self.project_repo.save(project)
        LOGGER.info("Removing project '%s' (id=%s)", project.name, project.id)

        enabled = sorted(project.enabled_services, key=lambda tag: tag.value)
        try:
            identity = project_username(project.name, actor.username)
            with self.fs_manager.project_sessions(identity) as sessions:
                self._deprovision(project, actor, sessions, enabled)
                self._remove_project_dir(project, sessions)
        except Exception as e:
            LOGGER.error("Could not clean up filesystem of project '%s': %s", project.name, e)

        self.project_repo.delete(project)
        LOGGER.info("Project '%s' removed", project.name)

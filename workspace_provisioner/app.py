# workspace_provisioner/app.py
from wsgiref.simple_server import make_server
import json
import logging
import re

# SQLAlchemy 및 의존성 임포트
from workspace_provisioner.config import RuntimeConfig
from workspace_provisioner.database.database import SessionLocal
from workspace_provisioner.repositories.sqlalchemy import (
    SqlalchemyCertificateRepository, SqlalchemyDatasetRepository, SqlalchemyProjectRepository,
    SqlalchemyQuotaRepository, SqlalchemyUserRepository
)
from workspace_provisioner.services.activation_registry import ServiceActivationRegistry
from workspace_provisioner.services.certificate_service import CertificateLifecycleManager, CertificateMaterializer
from workspace_provisioner.services.dataset_service import DatasetService
from workspace_provisioner.services.filesystem_service import FilesystemSessionManager
from workspace_provisioner.services.identity_service import IdentityService
from workspace_provisioner.services.notification_service import SmtpNotifier
from workspace_provisioner.services.provisioner import ProjectDefinition, ProjectProvisioner
from workspace_provisioner.services.quota_service import QuotaManager
from workspace_provisioner.services.remote_sharing import RemoteSharingGateway
from workspace_provisioner.services.seeding_service import BaselineSeeder
from workspace_provisioner.services.exceptions import *
from workspace_provisioner.utils.local_dfs import LocalDfsClient
from workspace_provisioner.utils.logging_config import setup_logging

LOGGER = logging.getLogger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValueError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValueError("JSON body must be an object.")
    return data

def get_actor(environ):
    """외부 인증 계층이 넣어 준 X-Remote-User 헤더로 요청한 사용자를 찾습니다."""
    username = environ.get('HTTP_X_REMOTE_USER')
    if not username:
        raise AccessDenied("Missing 'X-Remote-User' header.")
    return environ['services']['identity'].get_user_by_username(username)

def get_owned_project(environ, project_id, actor):
    project = environ['services']['provisioner'].get_project(int(project_id))
    if project.owner_id != actor.id:
        raise AccessDenied(f"User '{actor.username}' is not the owner of project '{project_id}'.")
    return project

def project_to_dict(project):
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "retention_period": project.retention_period,
        "state": project.state,
        "owner": project.owner.username if project.owner else None,
        "services": sorted(tag.value for tag in project.enabled_services),
        "created_at": project.created_at.isoformat() if project.created_at else None,
    }

def handle_exception(e):
    error_map = {
        AccessDenied: "403 Forbidden",
        DatasetNotPublic: "403 Forbidden",
        ProjectNotFound: "404 Not Found",
        UserNotFound: "404 Not Found",
        DatasetNotFound: "404 Not Found",
        ValueError: "400 Bad Request",
        ProjectDefinitionError: "400 Bad Request",
        UserCreationError: "400 Bad Request",
        QuotaExceeded: "400 Bad Request",
        ProjectNameConflict: "409 Conflict",
        CommunicationFailure: "502 Bad Gateway",
        SubsystemNotReady: "503 Service Unavailable",
    }
    status = error_map.get(type(e), "500 Internal Server Error")
    if status.startswith("500"):
        LOGGER.exception("Unhandled error while processing request: %s", e)
    return status, json.dumps({"error": str(e)})

# --------------------------------------------------------------------------
## 의존성 조립
# --------------------------------------------------------------------------

def build_services(db_session, config):
    """요청 하나에서 쓰는 리포지토리와 서비스를 만듭니다. (Repositories -> Services)"""
    project_repo = SqlalchemyProjectRepository(db_session)
    user_repo = SqlalchemyUserRepository(db_session)
    quota_repo = SqlalchemyQuotaRepository(db_session)
    cert_repo = SqlalchemyCertificateRepository(db_session)
    dataset_repo = SqlalchemyDatasetRepository(db_session)

    identity_service = IdentityService(config, user_repo)
    quota_manager = QuotaManager(config, project_repo, quota_repo)
    fs_manager = FilesystemSessionManager(config, LocalDfsClient.factory(config.DFS_ROOT))
    provisioner = ProjectProvisioner(
        config, project_repo, user_repo, quota_manager, fs_manager,
        ServiceActivationRegistry.default(config), BaselineSeeder(config),
    )
    certificates = CertificateLifecycleManager(
        config, project_repo, identity_service, SmtpNotifier(config),
        CertificateMaterializer(config, cert_repo),
    )

    return {
        'identity': identity_service,
        'quota': quota_manager,
        'provisioner': provisioner,
        'certificates': certificates,
        'datasets': DatasetService(project_repo, dataset_repo),
        'remote': RemoteSharingGateway(config),
    }

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def create_app(config, session_factory):
    def application(environ, start_response):
        db_session = session_factory()
        try:
            # 1. 생성된 서비스 객체들을 environ을 통해 핸들러에 전달
            environ['services'] = build_services(db_session, config)

            # 2. 라우팅 및 핸들러 실행
            path = environ.get("PATH_INFO", "")
            method = environ.get("REQUEST_METHOD", "")

            handler, path_args = None, []
            for route_method, pattern, route_handler in ROUTES:
                if method == route_method and (match := re.match(pattern, path)):
                    handler, path_args = route_handler, match.groups()
                    break

            if handler:
                status, response_body = handler(environ, *path_args)
            else:
                status, response_body = '404 Not Found', json.dumps({'error': 'Not Found'})

        except Exception as e:
            status, response_body = handle_exception(e)
        finally:
            db_session.close()

        start_response(status, [("Content-Type", "application/json")])
        return [response_body.encode("utf-8")]

    return application

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

def create_user_handler(environ, *args):
    data = get_request_data(environ)
    missing = [key for key in ('username', 'email', 'password') if not data.get(key)]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}.")
    user = environ['services']['identity'].create_user(data['username'], data['email'], data['password'])
    return '201 Created', json.dumps(user)

def create_project_handler(environ, *args):
    actor = get_actor(environ)
    data = get_request_data(environ)
    definition = ProjectDefinition(
        name=data.get('name'),
        description=data.get('description', ''),
        retention_period=data.get('retention_period', 0),
    )
    project = environ['services']['provisioner'].create_project(definition, actor, data.get('services', []))
    return '201 Created', json.dumps(project_to_dict(project))

def get_project_handler(environ, project_id):
    get_actor(environ)
    project = environ['services']['provisioner'].get_project(int(project_id))
    return '200 OK', json.dumps(project_to_dict(project))

def list_projects_handler(environ, *args):
    actor = get_actor(environ)
    projects = environ['services']['provisioner'].list_projects(actor)
    return '200 OK', json.dumps({"projects": [project_to_dict(p) for p in projects]})

def get_project_by_name_handler(environ, name):
    get_actor(environ)
    project = environ['services']['provisioner'].get_project_by_name(name)
    return '200 OK', json.dumps(project_to_dict(project))

def update_project_handler(environ, project_id):
    actor = get_actor(environ)
    data = get_request_data(environ)
    provisioner = environ['services']['provisioner']
    project = get_owned_project(environ, project_id, actor)

    changed = provisioner.update_details(project, data.get('description'), data.get('retention_period'), actor)
    if data.get('services'):
        before = project.enabled_services
        project = provisioner.update_services(project, data['services'], actor)
        changed = changed or project.enabled_services != before

    message = "Project updated." if changed else "Nothing to update."
    return '200 OK', json.dumps({"message": message, "project": project_to_dict(project)})

def disable_service_handler(environ, project_id, service):
    actor = get_actor(environ)
    project = get_owned_project(environ, project_id, actor)
    project = environ['services']['provisioner'].disable_services(project, [service], actor)
    return '200 OK', json.dumps(project_to_dict(project))

def delete_project_handler(environ, project_id):
    actor = get_actor(environ)
    environ['services']['provisioner'].remove_project(actor, int(project_id))
    return '204 No Content', ''

def get_quotas_handler(environ, project_id):
    get_actor(environ)
    snapshot = environ['services']['quota'].get_quotas(int(project_id))
    return '200 OK', json.dumps(snapshot.to_dict())

def list_multipliers_handler(environ, *args):
    get_actor(environ)
    multipliers = environ['services']['quota'].get_price_multipliers()
    return '200 OK', json.dumps({"multipliers": [{"id": m.id, "multiplier": m.multiplier} for m in multipliers]})

def download_credentials_handler(environ, project_id):
    actor = get_actor(environ)
    data = get_request_data(environ)
    bundle = environ['services']['certificates'].download_credentials(int(project_id), actor, data.get('password'))
    return '200 OK', json.dumps(bundle.to_dict())

def import_dataset_handler(environ, project_id):
    actor = get_actor(environ)
    data = get_request_data(environ)
    dataset = environ['services']['datasets'].import_public_dataset(
        int(project_id), data.get('project_name'), data.get('dataset_id'), actor
    )
    return '201 Created', json.dumps({"id": dataset.id, "name": dataset.name, "shared": dataset.shared})

def remote_readme_handler(environ, public_dataset_id):
    get_actor(environ)
    data = get_request_data(environ)
    if not data.get('address'):
        raise ValueError("Missing remote cluster 'address'.")
    readme = environ['services']['remote'].fetch_readme(public_dataset_id, data['address'])
    return '200 OK', json.dumps(readme.to_dict())


ROUTES = [
    ('POST', r'^/v1/users$', create_user_handler),
    ('POST', r'^/v1/projects$', create_project_handler),
    ('GET', r'^/v1/projects$', list_projects_handler),
    ('GET', r'^/v1/projects/info/([A-Za-z0-9_]+)$', get_project_by_name_handler),
    ('GET', r'^/v1/projects/([0-9]+)$', get_project_handler),
    ('PUT', r'^/v1/projects/([0-9]+)$', update_project_handler),
    ('DELETE', r'^/v1/projects/([0-9]+)$', delete_project_handler),
    ('DELETE', r'^/v1/projects/([0-9]+)/services/([a-z-]+)$', disable_service_handler),
    ('GET', r'^/v1/projects/([0-9]+)/quotas$', get_quotas_handler),
    ('GET', r'^/v1/multipliers$', list_multipliers_handler),
    ('POST', r'^/v1/projects/([0-9]+)/credentials$', download_credentials_handler),
    ('POST', r'^/v1/projects/([0-9]+)/datasets/import$', import_dataset_handler),
    ('POST', r'^/v1/remote/datasets/([a-zA-Z0-9_-]+)/readme$', remote_readme_handler),
]

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    config = RuntimeConfig()
    logger = setup_logging('workspace-provisioner', config.LOG_LEVEL, config.LOG_FILE or None)
    try:
        with make_server("", 8000, create_app(config, SessionLocal)) as httpd:
            logger.info("Serving workspace provisioner on port 8000...")
            httpd.serve_forever()
    except Exception as e:
        logger.error("Error starting server: %s", e)

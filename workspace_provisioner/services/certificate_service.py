import base64
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import ICertificateRepository, IProjectRepository
from workspace_provisioner.services.collaborators import IAuthenticator, INotifier
from workspace_provisioner.services.exceptions import AccessDenied, DownloadError, ProjectNotFound

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateMaterial:
    """한 번의 다운로드 범위 안에서만 존재하는 키스토어/트러스트스토어/비밀번호."""
    keystore: bytes = field(repr=False)
    truststore: bytes = field(repr=False)
    password: str = field(repr=False)


@dataclass(frozen=True)
class CredentialBundle:
    file_format: str
    keystore: str = field(repr=False)
    truststore: str = field(repr=False)
    password: str = field(repr=False)

    def to_dict(self):
        return {
            "fileExtension": self.file_format,
            "kStore": self.keystore,
            "tStore": self.truststore,
            "password": self.password,
        }


class CertificateMaterializer:
    """
    DB에 저장된 인증서 번들을 요청 범위의 로컬 디렉토리에 풀어 놓고, 끝나면 지웁니다.

    디렉토리는 요청마다 새로 만들므로 같은 사용자의 동시 다운로드끼리도 공유되지 않습니다.

    파일 배치:
        CERTS_DIR/<project>__<user>__<random>/<project>__<user>__kstore.jks
        CERTS_DIR/<project>__<user>__<random>/<project>__<user>__tstore.jks
        CERTS_DIR/<project>__<user>__<random>/<project>__<user>__cert.key
    """

    def __init__(self, config, cert_repo: ICertificateRepository):
        self.config = config
        self.cert_repo = cert_repo

    def _prefix(self, username: str, project_name: str) -> str:
        return f"{project_name}__{username}"

    def _material_files(self, directory: Path, prefix: str):
        return (
            directory / f"{prefix}__kstore.jks",
            directory / f"{prefix}__tstore.jks",
            directory / f"{prefix}__cert.key",
        )

    def materialize_local(self, user: models.User, project: models.Project) -> Path:
        """
        인증서 번들을 이번 요청 전용 디렉토리(0700)에 씁니다. 파일 권한은 소유자 전용(0600)입니다.

        쓰는 도중 실패하면 이미 쓴 파일을 지운 뒤 오류를 다시 발생시킵니다.

        Returns:
            인증서 파일이 들어 있는 디렉토리.

        Raises:
            FileNotFoundError: 사용자/프로젝트 조합의 인증서가 DB에 없을 때.
            OSError: 파일 쓰기에 실패했을 때.
        """
        cert = self.cert_repo.find_by_user_and_project(user.id, project.id)
        if cert is None:
            raise FileNotFoundError(f"No certificates issued for user '{user.username}' in project '{project.name}'.")

        prefix = self._prefix(user.username, project.name)
        certs_dir = Path(self.config.CERTS_DIR)
        certs_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        directory = Path(tempfile.mkdtemp(prefix=f"{prefix}__", dir=certs_dir))
        try:
            keystore_file, truststore_file, password_file = self._material_files(directory, prefix)
            for path, content in ((keystore_file, cert.keystore),
                                  (truststore_file, cert.truststore),
                                  (password_file, cert.password.encode('utf-8'))):
                fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                with os.fdopen(fd, 'wb') as f:
                    f.write(content)
        except OSError:
            self.remove_local(directory)
            raise
        return directory

    def read_material(self, directory: Path, prefix: str) -> CertificateMaterial:
        keystore_file, truststore_file, password_file = self._material_files(directory, prefix)
        return CertificateMaterial(
            keystore=keystore_file.read_bytes(),
            truststore=truststore_file.read_bytes(),
            password=password_file.read_text(encoding='utf-8').strip(),
        )

    def remove_local(self, directory: Path):
        """
        로컬 인증서 파일을 0으로 덮어쓴 뒤 삭제하고 디렉토리도 지웁니다.

        실패는 기록만 합니다. 이 메서드는 원래의 오류를 가리지 않도록 finally 경로에서 호출됩니다.
        """
        if not directory.exists():
            return
        for path in directory.iterdir():
            try:
                size = path.stat().st_size
                with open(path, 'r+b') as f:
                    f.write(b'\0' * size)
                    f.flush()
                    os.fsync(f.fileno())
                path.unlink()
            except OSError as e:
                LOGGER.error("Failed to erase certificate file %s: %s", path.name, e)
        try:
            directory.rmdir()
        except OSError as e:
            LOGGER.error("Failed to remove certificate directory %s: %s", directory, e)

    @contextmanager
    def materialized(self, user: models.User, project: models.Project):
        """인증서를 풀어 놓고 CertificateMaterial을 넘겨 줍니다. with 블록을 벗어나면 성공/실패와 무관하게 지웁니다."""
        directory = self.materialize_local(user, project)
        try:
            yield self.read_material(directory, self._prefix(user.username, project.name))
        finally:
            self.remove_local(directory)


class CertificateLifecycleManager:
    def __init__(self, config, project_repo: IProjectRepository, authenticator: IAuthenticator,
                 notifier: INotifier, materializer: CertificateMaterializer):
        self.config = config
        self.project_repo = project_repo
        self.authenticator = authenticator
        self.notifier = notifier
        self.materializer = materializer

    def download_credentials(self, project_id: int, actor: models.User, password: str) -> CredentialBundle:
        """
        프로젝트 인증서 번들을 전송 가능한 형태(base64)로 반환합니다.

        비밀번호는 별도의 알림(메일)으로도 보냅니다. 알림 실패는 경고만 남깁니다.
        로컬에 풀어 놓은 인증서는 어떤 경로로 끝나든 지워집니다.

        Raises:
            AccessDenied: 시스템 예약 계정이거나 비밀번호가 틀렸을 때. 이 경우 아무것도 디스크에 쓰지 않습니다.
            ProjectNotFound: 해당 ID의 프로젝트를 찾을 수 없을 때.
            DownloadError: 인증서를 준비하는 중 I/O 오류가 발생했을 때.
        """
        if actor.email in self.config.reserved_identities() or \
                not self.authenticator.verify_password(actor, password):
            LOGGER.warning("Credential download denied for user '%s' on project %s", actor.username, project_id)
            raise AccessDenied(f"Access to the certificates of project '{project_id}' was denied.")

        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFound(f"Project with id '{project_id}' not found.")

        try:
            with self.materializer.materialized(actor, project) as material:
                bundle = CredentialBundle(
                    file_format=self.config.CERT_FORMAT,
                    keystore=base64.b64encode(material.keystore).decode('ascii'),
                    truststore=base64.b64encode(material.truststore).decode('ascii'),
                    password=material.password,
                )
                self._send_password(actor, project, material.password)
        except OSError as e:
            LOGGER.error("Could not prepare credentials of user '%s' for project %s: %s",
                         actor.username, project_id, e)
            raise DownloadError(project_id, e) from e

        LOGGER.info("User '%s' downloaded credentials of project '%s'", actor.username, project.name)
        return bundle

    def _send_password(self, actor: models.User, project: models.Project, cert_password: str):
        try:
            self.notifier.notify(
                actor.email,
                "Certificate information",
                f"The password for the keystore and truststore of project '{project.name}' is: {cert_password}",
            )
        except Exception as e:
            LOGGER.warning("Could not send certificate password to '%s': %s", actor.email, e)

# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workspace_provisioner.config import TestConfig
from workspace_provisioner.database.database import Base
from workspace_provisioner.database import models
from workspace_provisioner.services.identity_service import hash_password
from workspace_provisioner.utils.local_dfs import LocalDfsClient

# ===================================================================
#  공용 Fixture
# ===================================================================

class CountingDfsFactory:
    """
    LocalDfsClient를 만들어 주면서 열린/닫힌 클라이언트 수를 세는 client_factory.
    호출이 끝난 뒤 열린 세션이 남아 있지 않은지 확인하는 데 사용합니다.
    """
    def __init__(self, root):
        self.root = root
        self.clients = []

    def __call__(self, identity):
        client = LocalDfsClient(self.root, identity)
        self.clients.append(client)
        return client

    @property
    def opened(self):
        return len(self.clients)

    @property
    def closed(self):
        return len([c for c in self.clients if c.closed])

    def identities(self):
        return [c.identity for c in self.clients]


@pytest.fixture
def config(tmp_path) -> TestConfig:
    """파일시스템과 인증서 디렉토리를 tmp_path 아래로 돌린 테스트 설정."""
    cfg = TestConfig()
    cfg.DFS_ROOT = str(tmp_path / "dfs")
    cfg.CERTS_DIR = str(tmp_path / "certs")
    return cfg


@pytest.fixture
def session_factory():
    """
    인메모리 SQLite에 연결된 sessionmaker.
    서비스 활성화 워커 스레드가 섞이므로 StaticPool과 check_same_thread=False를 사용합니다.
    """
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def dfs_factory(config) -> CountingDfsFactory:
    return CountingDfsFactory(config.DFS_ROOT)


@pytest.fixture
def owner(db_session) -> models.User:
    """비밀번호가 'secret'인 기본 프로젝트 소유자."""
    user = models.User(
        username="alice",
        email="alice@example.org",
        password_hash=hash_password("secret"),
        max_num_projects=10,
        num_created_projects=0,
    )
    db_session.add(user)
    db_session.commit()
    return user

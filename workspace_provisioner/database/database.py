from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from workspace_provisioner.config import RuntimeConfig


def make_engine(database_url: str):
    """
    SQLAlchemy 엔진을 생성합니다.

    SQLite는 요청 스레드와 서비스 활성화 워커 스레드가 섞이므로
    check_same_thread 옵션을 꺼 둡니다.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


# 진입점(app.py, db_init.py)이 사용하는 기본 엔진
engine = make_engine(RuntimeConfig().DATABASE_URL)

# autocommit=False, autoflush=False로 설정하여, 리포지토리가 명시적으로 commit을 호출해야 DB에 반영됩니다.
# expire_on_commit=False: 커밋 뒤에도 워커 스레드가 project.name 등을 DB 접근 없이 읽을 수 있어야 합니다.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()

import logging

from .database import engine, SessionLocal, Base
from .models import *
from workspace_provisioner.config import RuntimeConfig
from workspace_provisioner.services.identity_service import hash_password
from workspace_provisioner.utils.logging_config import setup_logging

LOGGER = logging.getLogger(__name__)

DEFAULT_PRICE_MULTIPLIERS = {
    'compute': 1.0,
    'gpu': 4.0,
}


def initialize_db(config=None, bind=None):
    """
    DB와 테이블을 생성하고, 기본 데이터를 삽입합니다.

    기본 데이터: 가격 배수, 관리자 계정, 그리고 설정의 RESERVED_IDENTITIES에 있는 시스템 계정.
    시스템 계정은 로그인 비밀번호가 없으므로 인증서 다운로드 등은 항상 거부됩니다.
    """
    config = config or RuntimeConfig()
    bind = bind or engine
    LOGGER.info("Initializing database %s", bind.url)

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=bind)
    LOGGER.info("Tables created.")

    db = SessionLocal(bind=bind)
    try:
        # 기본 데이터가 이미 있는지 확인
        if db.query(User).first():
            LOGGER.info("Default data already exists, skipping.")
            return

        for multiplier_id, value in DEFAULT_PRICE_MULTIPLIERS.items():
            db.add(PriceMultiplier(id=multiplier_id, multiplier=value))

        db.add(User(
            username='admin',
            email=config.SITE_EMAIL,
            password_hash=hash_password('admin'),
            max_num_projects=config.DEFAULT_MAX_NUM_PROJECTS,
        ))
        for identity in sorted(config.reserved_identities()):
            db.add(User(
                username=identity.split('@')[0],
                email=identity,
                password_hash='!',
                max_num_projects=0,
            ))

        db.commit()
        LOGGER.info("Default data inserted.")

    except Exception as e:
        LOGGER.error("Database initialization failed: %s", e)
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    runtime_config = RuntimeConfig()
    setup_logging('db_init', runtime_config.LOG_LEVEL, runtime_config.LOG_FILE or None)
    initialize_db(runtime_config)

"""
프로비저너 설정 값을 정의합니다.

각 설정 값은 다음 우선순위로 결정됩니다.

- WP_ 접두사가 붙은 환경 변수
- YAML 설정 파일
- 아래 BaseConfig에 정의된 기본값

설정 객체는 진입점에서 한 번 만들어 각 서비스 생성자에 명시적으로 전달합니다.
모듈 전역에서 설정을 직접 읽지 않습니다.
"""
import os

import yaml

CONFIG_FILE = '/etc/workspace-provisioner/provisioner.yaml'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class BaseConfig:
    """
    시스템 설정의 기본 키/값 쌍을 보관합니다.

    직접 인스턴스화하지 말고 RuntimeConfig 또는 TestConfig를 사용하세요.
    """

    # Database connection
    DATABASE_URL = 'sqlite:///workspace_provisioner.db'

    # Projects
    MAX_PROJECT_NAME_LENGTH = 64
    DEFAULT_MAX_NUM_PROJECTS = 10
    DEFAULT_RETENTION_PERIOD_DAYS = 0

    # 새 프로젝트마다 할당되는 쿼터
    DEFAULT_STORAGE_QUOTA_BYTES = 200 * 1024 ** 3
    DEFAULT_COMPUTE_QUOTA_SECONDS = 1000000
    # 쿼터 조회 시 함께 보여 줄 가격 배수의 ID
    QUOTA_PRICE_MULTIPLIER_ID = 'compute'

    # Distributed filesystem
    DFS_ROOT = '/srv/workspace-provisioner/dfs'
    DFS_SUPERUSER = 'hdfs'
    PROJECTS_DIR = '/Projects'

    # 다운로드마다 지워지는 임시 인증서 디렉토리
    CERTS_DIR = '/srv/workspace-provisioner/certs/transient'
    CERT_FORMAT = 'jks'

    # 인증서를 내려받을 수 없는 시스템 계정 (쉼표로 구분)
    RESERVED_IDENTITIES = 'agent@workspace.local'
    SITE_EMAIL = 'admin@workspace.local'

    # Mail settings
    MAIL_SERVER = 'smtp.example.org'
    MAIL_SENDER_EMAIL = 'sender@example.org'
    MAIL_SUPPRESS_SEND = True
    MAIL_USE_TLS = False

    # Remote dataset sharing
    REMOTE_SHARING_ENABLED = False
    REMOTE_SHARING_PUBLIC_ENDPOINT = ''
    REMOTE_SHARING_TIMEOUT = 10
    REMOTE_SHARING_SSL_VERIFY = True

    # Logging settings
    LOG_LEVEL = 'INFO'
    LOG_FILE = ''

    # enable access by []
    def __getitem__(self, item):
        return getattr(self, item)

    def get(self, key):
        return getattr(self, key)

    def __contains__(self, item):
        try:
            getattr(self, item)
        except AttributeError:
            return False
        return True

    def reserved_identities(self):
        return {i.strip() for i in str(self.RESERVED_IDENTITIES).split(',') if i.strip()}


def _parse_env_value(val):
    """
    환경 변수 값을 bool, int, float 중 해당하는 타입으로 변환합니다. 아니면 문자열 그대로 둡니다.
    """
    if val.lower() == "false":
        return False
    elif val.lower() == "true":
        return True
    try:
        return int(val)
    except ValueError:
        pass
    try:
        return float(val)
    except ValueError:
        pass
    return val


def _load_config_file(config_file):
    if not config_file or not os.path.isfile(config_file):
        return {}
    with open(config_file) as f:
        return yaml.safe_load(f) or {}


def resolve_configuration_value(key, default=None, file_values=None):
    wp_key = 'WP_' + key
    value = os.getenv(wp_key)
    if value is not None:
        return _parse_env_value(value)

    if file_values:
        value = file_values.get(key)
        if value is not None:
            return value

    return default


class RuntimeConfig(BaseConfig):
    """생성 시점에 환경 변수와 설정 파일에서 값을 한 번 읽어 오는 설정 객체."""

    def __init__(self, config_file=CONFIG_FILE):
        file_values = _load_config_file(config_file)
        for k, default in vars(BaseConfig).items():
            if not k.startswith('_') and k.isupper():
                setattr(self, k, resolve_configuration_value(k, default, file_values))


class TestConfig(BaseConfig):
    """Unit tests config object"""
    __test__ = False

    DATABASE_URL = 'sqlite://'
    MAIL_SUPPRESS_SEND = True

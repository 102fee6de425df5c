from .sqlalchemy_project_repository import SqlalchemyProjectRepository
from .sqlalchemy_user_repository import SqlalchemyUserRepository
from .sqlalchemy_quota_repository import SqlalchemyQuotaRepository
from .sqlalchemy_certificate_repository import SqlalchemyCertificateRepository
from .sqlalchemy_dataset_repository import SqlalchemyDatasetRepository

from .project import IProjectRepository
from .user import IUserRepository
from .quota import IQuotaRepository
from .certificate import ICertificateRepository
from .dataset import IDatasetRepository

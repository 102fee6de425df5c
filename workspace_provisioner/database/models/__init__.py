from .user import User
from .project import Project, ProjectServiceEntry, ProjectState, ServiceTag
from .quota import ProjectQuota, PriceMultiplier
from .certificate import UserCertificate
from .dataset import Dataset

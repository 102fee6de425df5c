import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base


class ServiceTag(str, enum.Enum):
    """프로젝트에 활성화할 수 있는 서비스의 종류."""
    NOTEBOOK = "notebook"
    STREAMING = "streaming"
    SERVING = "serving"
    DEPENDENCY_MANAGEMENT = "dependency-management"
    JOBS = "jobs"


class ProjectState(str, enum.Enum):
    ACTIVE = "active"
    DELETING = "deleting"
    DELETED = "deleted"


class Project(Base):
    """
    하나의 격리된 테넌트(tenant) 작업 공간을 나타냅니다.
    서비스 활성화 목록, 쿼터, 데이터셋, 인증서는 모두 이 Project 모델에 종속됩니다.
    Project의 상태 변경은 ProjectProvisioner만 수행합니다.
    """
    __tablename__ = "projects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    retention_period = Column(Integer, nullable=False, default=0)
    state = Column(String, nullable=False, default=ProjectState.ACTIVE.value)
    created_at = Column(DateTime, server_default=func.now())

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    owner = relationship("User", back_populates="projects")

    services = relationship("ProjectServiceEntry", back_populates="project", cascade="all, delete-orphan")
    quota = relationship("ProjectQuota", back_populates="project", uselist=False, cascade="all, delete-orphan")
    datasets = relationship("Dataset", back_populates="project", cascade="all, delete-orphan")
    certificates = relationship("UserCertificate", back_populates="project", cascade="all, delete-orphan")

    @property
    def enabled_services(self):
        return {ServiceTag(entry.service) for entry in self.services}

    def enable(self, tag: ServiceTag):
        """서비스를 활성화 목록에 추가합니다. 이미 있으면 무시합니다."""
        if tag not in self.enabled_services:
            self.services.append(ProjectServiceEntry(service=tag.value))

    def disable(self, tag: ServiceTag):
        for entry in list(self.services):
            if entry.service == tag.value:
                self.services.remove(entry)


class ProjectServiceEntry(Base):
    """프로젝트에 활성화된 서비스 하나를 기록하는 연관 테이블 모델입니다."""
    __tablename__ = "project_services"
    project_id = Column(Integer, ForeignKey("projects.id"), primary_key=True)
    service = Column(String, primary_key=True)

    project = relationship("Project", back_populates="services")

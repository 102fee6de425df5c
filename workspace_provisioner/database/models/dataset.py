from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base

class Dataset(Base):
    """
    프로젝트 디렉토리 아래의 데이터셋 하나를 나타냅니다.
    공개(public) 데이터셋은 다른 프로젝트가 공유(shared) 사본으로 가져올 수 있습니다.
    """
    __tablename__ = "datasets"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    public = Column(Boolean, nullable=False, default=False)
    shared = Column(Boolean, nullable=False, default=False)
    editable = Column(String, nullable=False, default="owner-only")
    source_dataset_id = Column(Integer, ForeignKey("datasets.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    project = relationship("Project", back_populates="datasets")

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    시스템에 로그인하고 프로젝트를 소유할 수 있는 사용자를 나타냅니다.
    사용자마다 만들 수 있는 프로젝트 수의 상한(max_num_projects)이 있습니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    max_num_projects = Column(Integer, nullable=False, default=10)
    num_created_projects = Column(Integer, nullable=False, default=0)

    projects = relationship("Project", back_populates="owner")

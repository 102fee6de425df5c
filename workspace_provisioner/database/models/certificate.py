from sqlalchemy import Column, Integer, String, LargeBinary, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class UserCertificate(Base):
    """
    프로젝트 멤버 한 명의 키스토어/트러스트스토어와 그 비밀번호입니다.
    다운로드 요청 동안에만 로컬 디스크에 풀어 놓고, 요청이 끝나면 지웁니다.
    """
    __tablename__ = "user_certificates"
    project_id = Column(Integer, ForeignKey("projects.id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    keystore = Column(LargeBinary, nullable=False)
    truststore = Column(LargeBinary, nullable=False)
    password = Column(String, nullable=False)

    project = relationship("Project", back_populates="certificates")
    user = relationship("User")

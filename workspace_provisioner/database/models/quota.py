from sqlalchemy import Column, Integer, BigInteger, Float, String, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class ProjectQuota(Base):
    """
    프로젝트의 스토리지(바이트)와 컴퓨트 시간(초) 쿼터 카운터입니다.
    한도(limit) 컬럼은 nullable이지만, 정상적으로 프로비저닝된 프로젝트라면 둘 다 값이 있어야 합니다.
    """
    __tablename__ = "project_quotas"
    project_id = Column(Integer, ForeignKey("projects.id"), primary_key=True)
    storage_bytes_used = Column(BigInteger, nullable=False, default=0)
    storage_bytes_limit = Column(BigInteger, nullable=True)
    compute_seconds_used = Column(BigInteger, nullable=False, default=0)
    compute_seconds_limit = Column(BigInteger, nullable=True)

    project = relationship("Project", back_populates="quota")


class PriceMultiplier(Base):
    """컴퓨트 비용 계산에 쓰이는 가격 배수. (예: 'compute' 1.0, 'gpu' 4.0)"""
    __tablename__ = "price_multipliers"
    id = Column(String, primary_key=True)
    multiplier = Column(Float, nullable=False)

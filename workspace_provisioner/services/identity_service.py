import hashlib
import hmac
from typing import Dict, Any

from workspace_provisioner.database import models
from workspace_provisioner.repositories.interfaces import IUserRepository
from workspace_provisioner.services.collaborators import IAuthenticator
from workspace_provisioner.services.exceptions import UserNotFound, UserCreationError


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


class IdentityService(IAuthenticator):
    """사용자 조회/생성과 비밀번호 검증을 제공합니다. 인증 협력자(IAuthenticator)의 기본 구현입니다."""

    def __init__(self, config, user_repo: IUserRepository):
        """
        IdentityService를 초기화합니다.

        Args:
            config: DEFAULT_MAX_NUM_PROJECTS 등을 담은 설정 객체.
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
        """
        self.config = config
        self.user_repo = user_repo

    def create_user(self, username: str, email: str, password: str) -> Dict[str, Any]:
        """
        새로운 사용자를 생성합니다. 비밀번호는 해시하여 저장합니다.

        Raises:
            UserCreationError: 동일한 이름이나 이메일의 사용자가 이미 존재할 때.
        """
        if self.user_repo.find_by_username(username) or self.user_repo.find_by_email(email):
            raise UserCreationError(f"User '{username}' already exists.")

        new_user = models.User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            max_num_projects=self.config.DEFAULT_MAX_NUM_PROJECTS,
            num_created_projects=0,
        )
        created_user = self.user_repo.create(new_user)
        return {"id": created_user.id, "username": created_user.username, "email": created_user.email}

    def get_user_by_username(self, username: str) -> models.User:
        """
        사용자 이름으로 사용자를 조회합니다.

        Raises:
            UserNotFound: 해당 이름의 사용자를 찾을 수 없을 때.
        """
        user = self.user_repo.find_by_username(username) if username else None
        if not user:
            raise UserNotFound(f"User '{username}' not found.")
        return user

    def verify_password(self, user: models.User, password: str) -> bool:
        if not user or password is None:
            return False
        return hmac.compare_digest(user.password_hash, hash_password(password))

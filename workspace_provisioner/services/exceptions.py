# workspace_provisioner/services/exceptions.py

# --- Not Found Exceptions ---
class ProjectNotFound(Exception):
    """프로젝트를 찾을 수 없을 때"""
    pass

class UserNotFound(Exception):
    """사용자를 찾을 수 없을 때"""
    pass

class DatasetNotFound(Exception):
    """데이터셋을 찾을 수 없을 때"""
    pass

# --- Creation/Validation Exceptions ---
class ProjectNameConflict(Exception):
    """같은 이름의 프로젝트가 이미 존재할 때"""
    pass

class ProjectDefinitionError(ValueError):
    """프로젝트 이름/설명 등 요청 값이 유효하지 않을 때"""
    pass

class UserCreationError(Exception):
    """같은 이름이나 이메일의 사용자가 이미 있어 생성할 수 없을 때"""
    pass

class DatasetNotPublic(Exception):
    """공개되지 않은 데이터셋을 다른 프로젝트로 가져오려고 할 때"""
    pass

# --- Quota Exceptions ---
class QuotaExceeded(Exception):
    """사용자가 만들 수 있는 프로젝트 수 등 한도를 넘었을 때"""
    pass

class QuotaInconsistent(Exception):
    """
    프로젝트의 스토리지/컴퓨트 쿼터 한도가 비어 있을 때.
    프로비저닝이 끝까지 되지 않은 프로젝트라는 뜻이므로 '무제한'으로 취급하면 안 됩니다.
    """
    pass

# --- Service Activation Exceptions ---
class ServiceActivationFailed(Exception):
    """서비스 활성화(또는 비활성화)가 실패했을 때. 실패한 서비스 태그와 원인을 함께 담습니다."""
    def __init__(self, tag, cause):
        self.tag = tag
        self.cause = cause
        tag_name = getattr(tag, "value", tag)
        super().__init__(f"Activation of service '{tag_name}' failed: {cause}")

# --- Security/Credential Exceptions ---
class AccessDenied(Exception):
    """비밀번호가 틀렸거나, 해당 작업이 금지된 사용자일 때"""
    pass

class DownloadError(Exception):
    """인증서 자료를 준비하는 중 I/O 오류 등이 발생했을 때"""
    def __init__(self, project_id, cause):
        self.project_id = project_id
        self.cause = cause
        super().__init__(f"Could not prepare credentials for project '{project_id}': {cause}")

# --- Remote Sharing Exceptions ---
class SubsystemNotReady(Exception):
    """이 노드가 원격 데이터셋 공유용으로 설정되어 있지 않을 때"""
    pass

class CommunicationFailure(Exception):
    """원격 클러스터와의 통신이 실패했거나 응답 형식이 잘못되었을 때"""
    def __init__(self, address, cause):
        self.address = address
        self.cause = cause
        super().__init__(f"Communication with remote cluster '{address}' failed: {cause}")

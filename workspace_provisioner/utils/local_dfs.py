# workspace_provisioner/utils/local_dfs.py
import os
import shutil
from pathlib import Path
from typing import List

from workspace_provisioner.services.collaborators import IDistributedFileSystem


class LocalDfsClient(IDistributedFileSystem):
    """
    로컬 디렉토리를 분산 파일시스템처럼 다루는 클라이언트.

    '/Projects/demo' 같은 파일시스템 경로를 root 아래의 실제 경로로 매핑합니다.
    개발 환경과 테스트에서 사용합니다.
    """

    def __init__(self, root: str, identity: str):
        self.root = Path(root)
        self.identity = identity
        self._closed = False

    @classmethod
    def factory(cls, root: str):
        """FilesystemSessionManager에 넘길 client_factory를 만듭니다."""
        def connect(identity: str) -> "LocalDfsClient":
            Path(root).mkdir(parents=True, exist_ok=True)
            return cls(root, identity)
        return connect

    @property
    def closed(self) -> bool:
        return self._closed

    def _resolve(self, path: str) -> Path:
        if self._closed:
            raise IOError(f"Filesystem client for '{self.identity}' is closed.")
        resolved = (self.root / path.lstrip("/")).resolve()
        root = self.root.resolve()
        if resolved != root and root not in resolved.parents:
            raise ValueError(f"Path escapes filesystem root: {path}")
        return resolved

    def mkdirs(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def write_text(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def listdir(self, path: str) -> List[str]:
        return sorted(os.listdir(self._resolve(path)))

    def rm(self, path: str, recursive: bool = False) -> bool:
        target = self._resolve(path)
        if not target.exists():
            return False
        if target.is_dir():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        else:
            target.unlink()
        return True

    def close(self) -> None:
        self._closed = True

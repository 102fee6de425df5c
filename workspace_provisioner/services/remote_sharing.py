import logging
from dataclasses import dataclass

import requests

from workspace_provisioner.services.exceptions import CommunicationFailure, SubsystemNotReady

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadmeContent:
    type: str
    content: str
    extension: str = "md"

    def to_dict(self):
        return {"type": self.type, "content": self.content, "extension": self.extension}


class RemoteSharingGateway:
    """
    다른 클러스터에 공개된 데이터셋의 README를 가져옵니다.

    원격 공유가 꺼져 있거나 이 노드의 공개 엔드포인트가 설정되지 않았으면 요청을 보내지 않습니다.
    """

    readme_path = "remote/dela/datasets/%s/readme"

    def __init__(self, config, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    def check_ready(self):
        if not self.config.REMOTE_SHARING_ENABLED:
            raise SubsystemNotReady("Remote dataset sharing is disabled.")
        if not self.config.REMOTE_SHARING_PUBLIC_ENDPOINT:
            raise SubsystemNotReady("Remote dataset sharing has no public endpoint configured.")

    def fetch_readme(self, public_dataset_id: str, remote_cluster_address: str) -> ReadmeContent:
        """
        원격 클러스터에서 공개 데이터셋의 README를 조회합니다.

        Raises:
            SubsystemNotReady: 원격 공유가 설정되지 않았을 때.
            CommunicationFailure: 전송 오류, 2xx가 아닌 응답, 잘못된 응답 본문일 때.
        """
        self.check_ready()

        url = '%s/%s' % (remote_cluster_address.rstrip('/'), self.readme_path % public_dataset_id)
        LOGGER.debug("Fetching remote readme %s", url)
        try:
            resp = self.session.get(
                url,
                headers={'Accept': 'application/json'},
                verify=self.config.REMOTE_SHARING_SSL_VERIFY,
                timeout=self.config.REMOTE_SHARING_TIMEOUT,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            LOGGER.warning("Remote readme request to %s failed: %s", remote_cluster_address, e)
            raise CommunicationFailure(remote_cluster_address, e) from e
        except ValueError as e:
            LOGGER.warning("Remote cluster %s returned a malformed readme: %s", remote_cluster_address, e)
            raise CommunicationFailure(remote_cluster_address, e) from e

        if not isinstance(body, dict) or 'content' not in body:
            raise CommunicationFailure(remote_cluster_address, ValueError("readme response has no content"))

        LOGGER.debug("Fetched remote readme %s", url)
        return ReadmeContent(
            type=body.get('type', 'text'),
            content=body['content'],
            extension=body.get('extension', 'md'),
        )

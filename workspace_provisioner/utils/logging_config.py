"""
프로세스 전체의 로깅을 설정합니다.

WSGI 서버, db_init 같은 진입점에서 한 번만 호출합니다.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from workspace_provisioner.config import LOG_FORMAT


def setup_logging(
    component_name: str,
    level="INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
):
    """
    루트 로거를 설정하고 component_name 이름의 로거를 반환합니다.

    Args:
        component_name: 로그에 표시할 구성 요소 이름 (예: 'api', 'db_init')
        level: 로그 레벨 (이름 문자열 또는 logging 상수)
        log_file: 지정하면 파일 핸들러를 추가합니다.
        format_string: 로그 포맷. 기본값은 config.LOG_FORMAT
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if format_string is None:
        format_string = LOG_FORMAT

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S'))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.info("%s logging initialized (level=%s)", component_name, logging.getLevelName(level))
    return logger

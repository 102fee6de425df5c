# workspace_provisioner/utils/readme_generator.py

# 데이터셋 디렉토리마다 만들어 두는 README.md 템플릿
README_TEMPLATE = """# {dataset_name}

{description}

Project: {project_name}
"""


def generate_readme(dataset_name, project_name, description=""):
    """
    템플릿에 데이터셋 정보를 채워 넣어 README.md 내용을 생성합니다.
    설명이 비어 있으면 기본 문구를 넣습니다.
    """
    if not description:
        description = f"Files of the {dataset_name} dataset."

    return README_TEMPLATE.format(
        dataset_name=dataset_name,
        description=description,
        project_name=project_name,
    )

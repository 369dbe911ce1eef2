"""
yc_function_deploy
------------------

Yandex Cloud Serverless Function 배포 CLI 패키지.
소스 경로를 ZIP 으로 묶고, 폴더 안의 함수를 찾거나 만든 뒤,
(선택적으로 Object Storage 를 거쳐) 새 함수 버전을 발행한다.
CI 실행 한 번에 한 번 호출되는 것을 전제로 한다.
"""

__all__ = [
    "config",
    "orchestrator",
]

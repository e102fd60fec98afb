"""
오류 타입 모듈

구조적 오류(입력 형식, 없음, 권한)를 구분하는 예외 클래스를 정의합니다.
통계 계산의 수치 문제는 오류가 아니며 None으로 표현됩니다.
"""


class StatsServiceError(RuntimeError):
    """서비스 계층 오류의 기본 클래스."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {'message': self.message}


class ValidationError(StatsServiceError):
    """저장 요청 본문 형식이 잘못되었을 때."""

    status_code = 400


class NotFoundError(StatsServiceError):
    status_code = 404


class RoundNotFoundError(NotFoundError):
    """전형을 찾을 수 없을 때."""


class SnapshotNotFoundError(NotFoundError):
    """전형에 저장된 계산 결과가 없을 때."""


class ForbiddenError(StatsServiceError):
    """다른 프로젝트의 전형에 접근할 때."""

    status_code = 403

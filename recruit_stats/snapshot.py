"""
계산 결과 스냅샷 모듈

저장되는 계산 결과 레코드(CalcSnapshot)와 저장 요청 본문 검증 기능을 제공합니다.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from recruit_stats.config import DEFAULT_SNAPSHOT_NAME
from recruit_stats.errors import ValidationError


@dataclass(frozen=True)
class CalcSnapshot:
    """전형 1개당 최대 1개 존재하는 계산 결과 레코드."""

    id: int
    round_id: int
    name: str
    config: Dict[str, Any]
    stats: Dict[str, Any]
    schema_version: str
    calculated_at: str
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'round_id': self.round_id,
            'name': self.name,
            'config': self.config,
            'stats': self.stats,
            'schema_version': self.schema_version,
            'calculated_at': self.calculated_at,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


def normalize_snapshot_name(name) -> str:
    """
    스냅샷 이름을 정리합니다. 비어 있으면 기본 이름을 씁니다.

    Examples:
        >>> normalize_snapshot_name('  필터 적용 버전 ')
        '필터 적용 버전'
        >>> normalize_snapshot_name(None)
        '기본 분석'
    """
    if name is None:
        return DEFAULT_SNAPSHOT_NAME
    text = str(name).strip()
    return text or DEFAULT_SNAPSHOT_NAME


def validate_snapshot_body(body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    저장 요청 본문 {name?, config, stats}을 검증합니다.

    Args:
        body (Optional[Mapping]): 요청 본문

    Returns:
        Dict[str, Any]: {'name', 'config', 'stats'} (이름은 정리된 값)

    Raises:
        ValidationError: 본문이 객체가 아니거나 config/stats가 객체가 아닐 때
    """
    if not isinstance(body, Mapping):
        raise ValidationError("요청 본문은 객체 형태여야 합니다.")

    config = body.get('config')
    if not isinstance(config, Mapping):
        raise ValidationError("config 필드는 객체 형태로 필수입니다.")

    stats = body.get('stats')
    if not isinstance(stats, Mapping):
        raise ValidationError("stats 필드는 객체 형태로 필수입니다.")

    return {
        'name': normalize_snapshot_name(body.get('name')),
        'config': dict(config),
        'stats': dict(stats),
    }


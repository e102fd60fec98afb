"""
결과 역할 변환 모듈

전형결과/최종결과 셀 값을 역할(합격/불합격/평가제외/기타 또는 사용자 지정 라벨)로 변환합니다.
"""

import math
from typing import Mapping, Optional


def normalize_cell_text(value) -> str:
    """
    셀 값을 비교용 문자열로 변환합니다.

    엑셀에서 숫자로 읽힌 값(예: 1.0)은 정수 표기('1')로 맞춥니다.

    Args:
        value: 셀 값

    Returns:
        str: 앞뒤 공백이 제거된 문자열 (None/NaN이면 '')

    Examples:
        >>> normalize_cell_text('  합격 ')
        '합격'
        >>> normalize_cell_text(1.0)
        '1'
        >>> normalize_cell_text(None)
        ''
    """
    if value is None:
        return ''
    if isinstance(value, float):
        if math.isnan(value):
            return ''
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def resolve_role(raw_value, table: Mapping[str, str]) -> Optional[str]:
    """
    원본 값을 역할로 변환합니다.

    Args:
        raw_value: 원본 셀 값
        table (Mapping[str, str]): {원본값: 역할} 매핑 테이블

    Returns:
        Optional[str]: 역할 (매핑되지 않았으면 None)

    Examples:
        >>> resolve_role(' 최종합격 ', {'최종합격': '합격'})
        '합격'
        >>> resolve_role('보류', {'최종합격': '합격'}) is None
        True
    """
    if not table:
        return None
    return table.get(normalize_cell_text(raw_value)) or None

"""
데이터 로더 모듈

지원자 엑셀 파일을 행 목록으로 읽고, 지원분야 그룹 구성·결과 매핑·평가항목 점검에
필요한 값 목록을 추출하는 기능을 제공합니다.
"""

import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from recruit_stats.cohort import coerce_score
from recruit_stats.config import GroupDefinition
from recruit_stats.roles import normalize_cell_text

logger = logging.getLogger(__name__)

USAGE_USED = "사용"
USAGE_UNUSED = "미사용"


def _cell_value(value):
    """빈 셀(NaN/None)을 ''로 바꿉니다."""
    if value is None:
        return ''
    if isinstance(value, float) and pd.isna(value):
        return ''
    return value


def load_rows_from_excel(file) -> Tuple[List[str], List[Dict[str, Any]]]:
    """
    엑셀 파일의 첫 시트를 헤더 + 행 목록으로 읽습니다.

    Args:
        file: 엑셀 파일 경로 또는 업로드된 파일 객체

    Returns:
        Tuple[List[str], List[Dict[str, Any]]]:
            (헤더 목록, [{헤더: 값, ...}, ...])

    Note:
        - 1행을 헤더로 사용합니다 (앞뒤 공백 제거).
        - 빈 셀은 ''로 채웁니다.
        - 모든 셀이 비어 있는 행은 건너뜁니다.
        - 시트가 비어 있으면 ([], [])를 반환합니다.

    Examples:
        >>> headers, rows = load_rows_from_excel('applicants.xlsx')
        >>> headers
        ['수험번호', '지원분야', '서류', '면접', '전형결과']
        >>> rows[0]['지원분야']
        '일반행정'
    """
    raw = pd.read_excel(file, sheet_name=0, header=None, engine='openpyxl', dtype=object)
    if raw.empty:
        return [], []

    headers = [normalize_cell_text(h) for h in raw.iloc[0].tolist()]

    seen = set()
    for h in headers:
        if h and h in seen:
            logger.warning("duplicate header %r; the right-most column wins", h)
        seen.add(h)

    rows = []
    for values in raw.iloc[1:].itertuples(index=False, name=None):
        row = {}
        for header, value in zip(headers, values):
            if not header:
                continue
            row[header] = _cell_value(value)
        if all(v == '' for v in row.values()):
            continue
        rows.append(row)

    return [h for h in headers if h], rows


def rows_to_frame(headers: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    행 목록을 미리보기용 DataFrame으로 변환합니다.

    Examples:
        >>> rows_to_frame(['이름'], [{'이름': '홍길동'}]).shape
        (1, 1)
    """
    columns = list(dict.fromkeys(headers))
    return pd.DataFrame(list(rows), columns=columns)


def unique_category_values(rows: Sequence[Mapping[str, Any]], field: str) -> List[str]:
    """
    컬럼의 고유 값(공백 제외)을 처음 등장한 순서대로 반환합니다.

    Examples:
        >>> unique_category_values([{'지원분야': '행정'}, {'지원분야': ' 행정 '}, {'지원분야': ''}], '지원분야')
        ['행정']
    """
    if not field:
        return []
    values = []
    seen = set()
    for row in rows:
        text = normalize_cell_text(row.get(field))
        if text and text not in seen:
            seen.add(text)
            values.append(text)
    return values


def unique_result_values(rows: Sequence[Mapping[str, Any]], field: str) -> List[str]:
    """
    결과 컬럼의 고유 값을 반환합니다. 빈 값('')도 매핑 대상이므로 포함합니다.
    """
    if not field:
        return []
    values = []
    seen = set()
    for row in rows:
        text = normalize_cell_text(row.get(field))
        if text not in seen:
            seen.add(text)
            values.append(text)
    return values


def ungrouped_values(
    rows: Sequence[Mapping[str, Any]],
    field: str,
    groups: GroupDefinition,
) -> List[str]:
    """어느 그룹에도 속하지 않은 지원분야 값 목록."""
    used = set()
    for name in groups.names():
        used.update(groups.members(name))
    return [v for v in unique_category_values(rows, field) if v not in used]


def detect_field_usage(
    rows: Sequence[Mapping[str, Any]],
    category_field: str,
    groups: GroupDefinition,
    evaluation_fields: Sequence[str],
) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    그룹별로 평가항목이 숫자로만 채워져 있는지 점검합니다.

    Args:
        rows: 원본 행 목록
        category_field (str): 지원분야 컬럼명
        groups (GroupDefinition): 지원분야 그룹 정의
        evaluation_fields (Sequence[str]): 평가항목 컬럼 목록

    Returns:
        Dict: {그룹명: {평가항목: {'status': '사용'|'미사용', 'text_values': [...]}}}

    Note:
        빈 셀은 무시하고, 숫자로 변환되지 않는 값이 하나라도 있으면 '미사용'입니다.

    Examples:
        >>> usage = detect_field_usage(rows, '지원분야', groups, ['면접'])
        >>> usage['행정']['면접']
        {'status': '미사용', 'text_values': ['결시']}
    """
    usage: Dict[str, Dict[str, Dict[str, Any]]] = {}
    if not category_field:
        return usage

    for group_name in groups.names():
        members = set(groups.members(group_name))
        group_rows = [r for r in rows if normalize_cell_text(r.get(category_field)) in members]

        field_usage = {}
        for f in evaluation_fields:
            text_values = []
            for r in group_rows:
                text = normalize_cell_text(r.get(f))
                if not text:
                    continue
                if coerce_score(r.get(f)) is None and text not in text_values:
                    text_values.append(text)
            field_usage[f] = {
                'status': USAGE_USED if not text_values else USAGE_UNUSED,
                'text_values': text_values,
            }
        usage[group_name] = field_usage

    return usage

"""
스타일링 모듈

통계 값의 표시 형식과 HTML 테이블 렌더링 기능을 제공합니다.
"""

import math
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd

from recruit_stats.summary import SUMMARY_COLUMNS

EMPTY_MARK = "-"


def format_stat(value, digits: int = 2) -> str:
    """
    통계 값을 표시용 문자열로 변환합니다. 값이 없으면 '-'.

    Examples:
        >>> format_stat(66.666, 1)
        '66.7'
        >>> format_stat(None)
        '-'
    """
    if value is None:
        return EMPTY_MARK
    try:
        v = float(value)
    except (TypeError, ValueError):
        return EMPTY_MARK
    if math.isnan(v):
        return EMPTY_MARK
    return f"{v:.{digits}f}"


def format_summary_frame(summary: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    지원분야 간 요약 비교표를 표시용 문자열 DataFrame으로 만듭니다.

    합격률·합격컷 상위 %는 소수 첫째 자리, 점수는 소수 둘째 자리까지 표시합니다.
    """
    records = []
    for row in summary:
        records.append({
            SUMMARY_COLUMNS['group_name']: row['group_name'],
            SUMMARY_COLUMNS['n']: int(row['n']),
            SUMMARY_COLUMNS['pass_rate']: format_stat(row['pass_rate'], 1),
            SUMMARY_COLUMNS['avg_total']: format_stat(row['avg_total'], 2),
            SUMMARY_COLUMNS['cutoff']: format_stat(row['cutoff'], 2),
            SUMMARY_COLUMNS['cutoff_percentile']: format_stat(row['cutoff_percentile'], 1),
        })
    return pd.DataFrame(records, columns=list(SUMMARY_COLUMNS.values()))


def format_detail_frame(detail: Mapping[str, Any]) -> pd.DataFrame:
    """그룹 요약 통계 (총점 기준) 표."""
    items = [
        ('최고점', format_stat(detail.get('max'))),
        ('최저점', format_stat(detail.get('min'))),
        ('합격자 기준 최저점 (커트라인)', format_stat(detail.get('cutoff'))),
        ('불합격자 기준 최고점', format_stat(detail.get('fail_max'))),
        ('총점 평균', format_stat(detail.get('avg_total'))),
        ('총점 중앙값', format_stat(detail.get('median'))),
        ('총점 표준편차', format_stat(detail.get('std_dev'))),
        ('합격컷 상위 %', format_stat(detail.get('cutoff_percentile'), 1)),
    ]
    return pd.DataFrame(items, columns=['항목', '값'])


def format_field_stats_frame(detail: Mapping[str, Any]) -> pd.DataFrame:
    """평가항목별 합/불 평균 및 합격 공헌도(상관계수) 표."""
    records = [
        {
            '평가항목': fs['field'],
            '합격자 평균': format_stat(fs['pass_avg']),
            '불합격자 평균': format_stat(fs['fail_avg']),
            '합격 공헌도 (상관계수)': format_stat(fs['corr'], 3),
        }
        for fs in detail.get('field_stats', [])
    ]
    return pd.DataFrame(records, columns=['평가항목', '합격자 평균', '불합격자 평균', '합격 공헌도 (상관계수)'])


def get_table_style() -> str:
    """
    HTML 테이블 스타일 CSS를 반환합니다.

    Returns:
        str: 테이블 CSS 스타일 문자열
    """
    return """
    <style>
    .styled-table {
        width: 100%;
        border-collapse: collapse;
        font-size: 0.85rem;
        font-family: 'Pretendard', sans-serif;
    }
    .styled-table th {
        background-color: #f0f2f6;
        font-weight: 700;
        text-align: right;
        padding: 4px 8px;
        border-bottom: 1px solid #ccc;
    }
    .styled-table td {
        text-align: right;
        padding: 4px 8px;
        border-bottom: 1px solid #eee;
    }
    .styled-table th.left-align,
    .styled-table td.left-align {
        text-align: left !important;
    }
    </style>
    """


def make_html_table(df: pd.DataFrame, left_align_cols: Optional[List[str]] = None) -> str:
    """
    DataFrame을 HTML 테이블로 변환합니다.

    Args:
        df (pd.DataFrame): 변환할 DataFrame
        left_align_cols (Optional[List[str]]): 왼쪽 정렬할 컬럼 리스트

    Returns:
        str: HTML 테이블 문자열

    Examples:
        >>> df = format_summary_frame(stats['cross_group_summary'])
        >>> html = make_html_table(df, left_align_cols=['지원분야(통합)'])
    """
    left_align_cols = left_align_cols or []
    html = '<table class="styled-table">'

    # Header
    html += '<thead><tr>'
    for col in df.columns:
        if col in left_align_cols:
            html += f'<th class="left-align">{col}</th>'
        else:
            html += f'<th>{col}</th>'
    html += '</tr></thead>'

    # Body
    html += '<tbody>'
    for _, row in df.iterrows():
        html += '<tr>'
        for col in df.columns:
            val = row[col]
            if col in left_align_cols:
                html += f'<td class="left-align">{val}</td>'
            else:
                html += f'<td>{val}</td>'
        html += '</tr>'
    html += '</tbody></table>'

    return html


def style_pass_rate(val, threshold: float) -> str:
    """
    합격률 셀에 배경 막대 스타일을 적용합니다.

    Args:
        val: 셀 값 (숫자 또는 '-')
        threshold (float): 기준값 (이상이면 흰색, 미만이면 회색 배경)

    Returns:
        str: CSS 스타일 문자열 (숫자가 아니면 '')
    """
    try:
        v = float(val)
    except (TypeError, ValueError):
        return ''
    if math.isnan(v):
        return ''
    bg_color = '#eeeeee' if v < threshold else '#ffffff'
    return f"background: linear-gradient(90deg, #90caf9 {v}%, {bg_color} {v}%); color: black;"


def group_headline(group_name: str, detail: Mapping[str, Any]) -> str:
    """
    그룹 제목줄 문자열.

    Examples:
        >>> group_headline('행정', {'n': 3, 'pass_rate': 66.67, 'cutoff_percentile': 66.67})
        '행정 (통계 대상 3명) · 전형 합격률 66.7% · 합격컷 상위 66.7%'
    """
    rate = detail.get('pass_rate')
    text = f"{group_name} (통계 대상 {detail.get('n', 0)}명) · 전형 합격률 "
    text += f"{format_stat(rate, 1)}%" if rate is not None else EMPTY_MARK
    if detail.get('cutoff_percentile') is not None:
        text += f" · 합격컷 상위 {format_stat(detail['cutoff_percentile'], 1)}%"
    return text

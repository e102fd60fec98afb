import hashlib
import logging

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

from recruit_stats.cohort import build_cohorts
from recruit_stats.config import (
    FINAL_ROLES,
    PHASE_ROLES,
    CalcConfig,
    FieldRoleMapping,
    GroupDefinition,
    ResultRoleMapping,
    get_config,
    new_app_config,
    set_config,
)
from recruit_stats.data_loader import (
    detect_field_usage,
    load_rows_from_excel,
    rows_to_frame,
    ungrouped_values,
    unique_category_values,
    unique_result_values,
)
from recruit_stats.errors import StatsServiceError
from recruit_stats.export import export_stats_to_excel
from recruit_stats.repository import RoundRepository
from recruit_stats.service import (
    delete_calc_for_round,
    get_calc_for_round,
    save_calc_for_round,
    update_round_for_project,
)
from recruit_stats.styles import (
    format_detail_frame,
    format_field_stats_frame,
    format_summary_frame,
    get_table_style,
    group_headline,
    make_html_table,
    style_pass_rate,
)
from recruit_stats.summary import stats_from_cohorts, summary_to_frame
from recruit_stats.visualizations import (
    create_cross_group_chart,
    create_field_comparison_chart,
    create_final_compare_chart,
    create_phase_average_chart,
    create_score_distribution_chart,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ═══════════════════════════════════════════════════════════════════
# Session State 초기화
# ═══════════════════════════════════════════════════════════════════

if 'app_config' not in st.session_state:
    st.session_state.app_config = new_app_config()
    set_config(st.session_state.app_config, 'round.project_id', 1)
    set_config(st.session_state.app_config, 'round.round_id', None)


def cfg(path: str, default=None):
    return get_config(st.session_state.app_config, path, default)


def open_repo() -> RoundRepository:
    repo = RoundRepository(cfg('storage.db_path'), busy_timeout_ms=cfg('storage.busy_timeout_ms', 5000))
    repo.init_db()
    return repo


def render_table(df: pd.DataFrame, left_align_cols=None, height: int = 260) -> None:
    components.html(get_table_style() + make_html_table(df, left_align_cols), height=height, scrolling=True)


st.set_page_config(page_title="지원분야별 전형 통계", layout="wide")
st.title("📊 지원분야별 전형 통계")

# ═══════════════════════════════════════════════════════════════════
# 사이드바: 저장소
# ═══════════════════════════════════════════════════════════════════

with st.sidebar:
    st.header("저장소")
    set_config(st.session_state.app_config, 'storage.db_path',
               st.text_input("DB 파일", value=cfg('storage.db_path')))
    set_config(st.session_state.app_config, 'round.project_id',
               int(st.number_input("프로젝트 ID", min_value=1, value=int(cfg('round.project_id', 1)))))
    round_id = cfg('round.round_id')
    st.caption(f"현재 전형 ID: {round_id if round_id is not None else '-'}")

# ═══════════════════════════════════════════════════════════════════
# 데이터 업로드 + 컬럼 역할
# ═══════════════════════════════════════════════════════════════════

uploaded = st.file_uploader("지원자 엑셀 파일", type=['xlsx'])
if uploaded is None:
    st.info("엑셀 파일을 업로드하면 통계를 계산합니다.")
    st.stop()

# 다른 파일이나 다른 프로젝트로 바뀌면 새 전형으로 저장
round_key = f"{cfg('round.project_id')}:{hashlib.sha256(uploaded.getvalue()).hexdigest()}"
if cfg('round.round_key') != round_key:
    set_config(st.session_state.app_config, 'round.round_key', round_key)
    set_config(st.session_state.app_config, 'round.round_id', None)

headers, rows = load_rows_from_excel(uploaded)
if not rows:
    st.warning("⚠️ 분석할 데이터가 없습니다.")
    st.stop()

with st.expander("원본 데이터 미리보기", expanded=False):
    st.dataframe(rows_to_frame(headers, rows).head(50), use_container_width=True)

options = [''] + headers
col1, col2, col3 = st.columns(3)
with col1:
    id_field = st.selectbox("수험번호 컬럼", options)
    category_field = st.selectbox("지원분야 컬럼", options)
with col2:
    phase_field = st.selectbox("전형결과 컬럼", options)
    final_field = st.selectbox("최종결과 컬럼", options)
with col3:
    eval_fields = st.multiselect("평가항목 컬럼", [h for h in headers if h not in (id_field, category_field)])

mapping = FieldRoleMapping(
    candidate_id_field=id_field,
    category_field=category_field,
    evaluation_fields=eval_fields,
    phase_result_field=phase_field,
    final_result_field=final_field,
)

if not mapping.category_field:
    st.info("지원분야 컬럼을 선택해 주세요.")
    st.stop()

# ═══════════════════════════════════════════════════════════════════
# 지원분야 그룹 + 결과 역할 매핑
# ═══════════════════════════════════════════════════════════════════

groups = GroupDefinition.from_values(unique_category_values(rows, mapping.category_field))
with st.expander("지원분야 상위 카테고리", expanded=False):
    edited = {}
    for name in groups.names():
        new_name = st.text_input(f"'{name}' 그룹명", value=name, key=f"group_{name}")
        edited.setdefault(new_name.strip() or name, []).extend(groups.members(name))
    groups = GroupDefinition(edited)
    leftover = ungrouped_values(rows, mapping.category_field, groups)
    if leftover:
        st.warning(f"그룹에 속하지 않은 지원분야: {', '.join(leftover)}")

with st.expander("결과 역할 매핑", expanded=True):
    phase_table, final_table = {}, {}
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**전형결과**")
        for value in unique_result_values(rows, mapping.phase_result_field):
            role = st.selectbox(value or "(빈 값)", [''] + list(PHASE_ROLES), key=f"phase_{value}")
            phase_table[value] = role
    with c2:
        st.markdown("**최종결과**")
        for value in unique_result_values(rows, mapping.final_result_field):
            role = st.selectbox(value or "(빈 값)", [''] + list(FINAL_ROLES), key=f"final_{value}")
            final_table[value] = role
    result_mapping = ResultRoleMapping(phase=phase_table, final=final_table)

usage = detect_field_usage(rows, mapping.category_field, groups, mapping.evaluation_fields)
for group_name, fields in usage.items():
    text_fields = [f for f, u in fields.items() if u['text_values']]
    if text_fields:
        st.warning(f"'{group_name}' 그룹의 {', '.join(text_fields)} 항목에 숫자가 아닌 값이 있어 해당 값은 제외됩니다.")

# ═══════════════════════════════════════════════════════════════════
# 통계 계산
# ═══════════════════════════════════════════════════════════════════

cohorts = build_cohorts(rows, mapping, groups, result_mapping)
stats = stats_from_cohorts(cohorts, mapping)

st.subheader("지원분야 간 요약 비교")
summary_df = summary_to_frame(stats['cross_group_summary'])
st.dataframe(
    summary_df.style
    .format(precision=2, na_rep="-")
    .map(lambda x: style_pass_rate(x, 50.0), subset=['전형 합격률(%)']),
    use_container_width=True,
    hide_index=True,
)
st.plotly_chart(create_cross_group_chart(stats['cross_group_summary']), use_container_width=True)

included_by_group = {}
for group_name, detail in stats['groups'].items():
    with st.expander(group_headline(group_name, detail), expanded=True):
        included = st.multiselect(
            "통계/그래프에 반영할 평가항목",
            detail['available_fields'],
            default=detail['included_fields'],
            key=f"included_{group_name}",
        )
        included_by_group[group_name] = included

        if detail['scored_count'] == 0:
            st.caption("총점 데이터가 없어 통계를 계산할 수 없습니다.")
        else:
            render_table(format_detail_frame(detail), left_align_cols=['항목'], height=330)
            st.plotly_chart(create_score_distribution_chart(cohorts[group_name], group_name),
                            use_container_width=True)

        if detail['phase_avg']:
            st.plotly_chart(create_phase_average_chart(detail, group_name), use_container_width=True)
        else:
            st.caption("합격/불합격 구분 가능한 데이터가 없습니다.")

        if detail['final_compare']:
            st.plotly_chart(create_final_compare_chart(detail, group_name), use_container_width=True)

if included_by_group:
    stats = stats_from_cohorts(cohorts, mapping, included_by_group)

st.subheader("평가항목별 합/불 평균 및 합격 공헌도(상관계수)")
for group_name, detail in stats['groups'].items():
    if not detail['field_stats']:
        continue
    st.markdown(f"**{group_name}**")
    render_table(format_field_stats_frame(detail), left_align_cols=['평가항목'])
    st.plotly_chart(create_field_comparison_chart(detail, group_name), use_container_width=True)

st.download_button(
    "📥 엑셀로 다운로드",
    data=export_stats_to_excel(stats),
    file_name="지원분야별_통계.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

# ═══════════════════════════════════════════════════════════════════
# 계산 결과 저장
# ═══════════════════════════════════════════════════════════════════

st.subheader("계산 결과 저장")
snapshot_name = st.text_input("저장 이름", value=cfg('snapshot.default_name'))
calc_config = CalcConfig(
    mapping=mapping,
    support_groups=groups,
    result_mapping=result_mapping,
    included_fields_by_group=included_by_group,
)
project_id = cfg('round.project_id')

b1, b2, b3 = st.columns(3)
try:
    if b1.button("💾 저장"):
        with open_repo() as repo:
            if cfg('round.round_id') is None:
                new_id = repo.create_round(
                    project_id, uploaded.name, headers, rows,
                    mapping.to_dict(), groups.to_dict(), result_mapping.to_dict(),
                )
                set_config(st.session_state.app_config, 'round.round_id', new_id)
            else:
                update_round_for_project(
                    repo, cfg('round.round_id'), project_id, uploaded.name, headers, rows,
                    mapping.to_dict(), groups.to_dict(), result_mapping.to_dict(),
                )
            result = save_calc_for_round(
                repo, cfg('round.round_id'), project_id,
                {'name': snapshot_name, 'config': calc_config.to_dict(), 'stats': stats},
            )
        st.success(result['message'])

    if b2.button("📂 불러오기") and cfg('round.round_id') is not None:
        with open_repo() as repo:
            calc = get_calc_for_round(repo, cfg('round.round_id'), project_id)['calc']
        st.caption(f"{calc['name']} · {calc['calculated_at']}")
        render_table(format_summary_frame(calc['stats']['cross_group_summary']), left_align_cols=['지원분야(통합)'])

    if b3.button("🗑️ 삭제") and cfg('round.round_id') is not None:
        with open_repo() as repo:
            result = delete_calc_for_round(repo, cfg('round.round_id'), project_id)
        st.info(result['message'])
except StatsServiceError as e:
    st.error(f"❌ {e.message}")

"""
Disaster Ops Dashboard
======================
Streamlit app for running a disaster-restoration job board.

Views:
1. Dashboard: headline KPIs, today's priorities, deposit alerts
2. Projects: sortable job table
3. Schedule: weekly crew board, add/remove jobs per day
4. Margin Analysis: budget vs actual costs and margins
5. Project Detail: one job's financials, costs and issues
"""

import logging

import altair as alt
import pandas as pd
import streamlit as st

from ops_dashboard.analysis import (
    METRIC_DEFINITIONS, calculate_dashboard_metrics, cost_breakdown,
    deposit_alerts, generate_priorities, margin_table, project_margin,
    projects_frame,
)
from ops_dashboard.config import DEFAULT_DATA_PATH, LOG_LEVEL, WEEK_DAYS, WEEK_LABEL
from ops_dashboard.etl import load_projects
from ops_dashboard.schedule import plan_week, schedule_frame
from ops_dashboard.sorting import SORTABLE_COLUMNS, SortConfig, apply_sort, header_label, toggle_sort
from ops_dashboard.store import ProjectStore

logger = logging.getLogger(__name__)

# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="Disaster Ops Dashboard",
    page_icon="🚨",
    layout="wide",
    initial_sidebar_state="expanded"
)

VIEWS = ["Dashboard", "Projects", "Schedule", "Margin Analysis", "Project Detail"]

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def fmt_currency(val):
    if pd.isna(val):
        return "$0"
    return f"${float(val):,.0f}" if float(val) >= 0 else f"-${abs(float(val)):,.0f}"

def fmt_pct(val):
    """Fraction -> whole percent."""
    if pd.isna(val):
        return "N/A"
    return f"{float(val) * 100:.0f}%"

def fmt_variance(val, over="over", under="under"):
    if pd.isna(val):
        return "$0"
    return f"{fmt_currency(abs(float(val)))} {over if float(val) > 0 else under}"


# =============================================================================
# DATA LOADING (SESSION STORE)
# =============================================================================

def get_store():
    """The session's ProjectStore, loaded once per browser session."""
    if "store" not in st.session_state:
        uploaded = st.session_state.get("uploaded_file")
        source = uploaded if uploaded is not None else str(DEFAULT_DATA_PATH)
        st.session_state["store"] = ProjectStore(load_projects(source))
        logger.info("Session store initialised from %s", getattr(source, "name", source))
    return st.session_state["store"]

def reset_store():
    st.session_state.pop("store", None)

def click_header(key):
    st.session_state["sort_config"] = toggle_sort(st.session_state.get("sort_config", SortConfig()), key)

def open_detail(project_id):
    st.session_state["selected_project"] = project_id
    st.session_state["view"] = "Project Detail"


# =============================================================================
# VIEWS
# =============================================================================

def render_dashboard(projects):
    metrics = calculate_dashboard_metrics(projects)

    st.title("Good Morning, Team")
    st.caption(pd.Timestamp.today().strftime("%A, %B %d, %Y"))
    if metrics.overdue_count > 0:
        st.error(f"{metrics.overdue_count} Critical Priorities Today")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Revenue", fmt_currency(metrics.total_revenue))
    c2.metric("Outstanding Balance", fmt_currency(metrics.outstanding_balance))
    c3.metric("Critical Projects", metrics.critical_projects)
    c4.metric("Deposits Collected", fmt_currency(metrics.deposits_collected))

    st.subheader("Today's Top Priorities")
    priorities = generate_priorities(metrics)
    if priorities:
        for item in priorities:
            st.markdown(f"- {item}")
    else:
        st.success("✅ Nothing urgent today.")

    st.subheader("Quick Actions")
    c1, c2, c3 = st.columns(3)
    c1.button("View All Projects", on_click=st.session_state.__setitem__, args=("view", "Projects"))
    c2.button("Plan This Week", on_click=st.session_state.__setitem__, args=("view", "Schedule"))
    c3.button("Analyze Margins", on_click=st.session_state.__setitem__, args=("view", "Margin Analysis"))

    if metrics.no_deposit_projects:
        lines = "\n".join(
            f"- **{p.customer}** - {fmt_currency(p.revenue)}" for p in deposit_alerts(metrics)
        )
        st.error(
            f"🚨 **CRITICAL: {len(metrics.no_deposit_projects)} Jobs With No Deposits**\n\n"
            f"Total at risk: **{fmt_currency(metrics.no_deposit_amount)}**\n\n"
            f"Top Jobs Needing Deposits:\n{lines}"
        )


def render_projects(projects):
    st.title("Active Projects")

    config = st.session_state.setdefault("sort_config", SortConfig())

    st.caption("Click a column to sort; click again to reverse.")
    header_cols = st.columns(len(SORTABLE_COLUMNS))
    for hc, (column, key) in zip(header_cols, SORTABLE_COLUMNS.items()):
        hc.button(header_label(config, column), key=f"sort-{key}",
                  on_click=click_header, args=(key,), use_container_width=True)

    ordered = apply_sort(projects, config)
    table = projects_frame(ordered)

    disp = table[[
        "Customer", "Job_Type", "Status", "Revenue", "Balance_Due",
        "Actual_Margin_Pct", "Priority", "Issues",
    ]].copy()
    disp.columns = ["Customer", "Type", "Status", "Revenue", "Balance Due", "Margin %", "Priority", "Issues"]

    def _highlight(row):
        styles = [""] * len(row)
        src = table.loc[row.name]
        if src["Is_High_Balance"]:
            styles[disp.columns.get_loc("Balance Due")] = "color: #e53935"
        styles[disp.columns.get_loc("Margin %")] = (
            "color: #e53935" if src["Is_Margin_Low"] else "color: #43a047"
        )
        return styles

    st.dataframe(
        disp.style.apply(_highlight, axis=1).format({
            "Revenue": "${:,.0f}", "Balance Due": "${:,.0f}", "Margin %": "{:.0f}%",
        }),
        use_container_width=True, height=420,
    )

    options = {f"{p.customer} (#{p.id})": p.id for p in ordered}
    if options:
        col1, col2 = st.columns([3, 1])
        with col1:
            choice = st.selectbox("Open project", list(options), key="detail_choice")
        with col2:
            st.button("View →", on_click=open_detail, args=(options[choice],))


def render_schedule(store):
    st.title("Weekly Schedule")
    st.caption(WEEK_LABEL)

    plan = plan_week(store.projects, WEEK_DAYS)

    cols = st.columns(len(plan.days))
    for col, day in zip(cols, plan.days):
        with col:
            st.markdown(f"### {day.day}")
            st.caption(f"{day.date_label} · {day.crew_hours} crew-hours")
            for p in day.projects:
                st.markdown(
                    f"**{p.customer}**  \n{p.duration} days • {p.crew_size} crew  \n{fmt_currency(p.revenue)}"
                )
                st.button(
                    "✕ Remove", key=f"rm-{day.day}-{p.id}",
                    on_click=store.remove_from_schedule, args=(p.id, day.day),
                )

    chart = alt.Chart(schedule_frame(plan)).mark_bar().encode(
        x=alt.X("Day:N", sort=[d.day for d in plan.days], title=""),
        y=alt.Y("Crew_Hours:Q", title="Crew-hours"),
        tooltip=["Day", "Date", "Jobs", "Crew_Hours", alt.Tooltip("Revenue:Q", format="$,.0f")],
    ).properties(height=220)
    st.altair_chart(chart, use_container_width=True)

    if plan.unscheduled:
        st.subheader(f"Unscheduled Projects ({len(plan.unscheduled)})")
        for p in plan.unscheduled:
            with st.container():
                st.markdown(
                    f"**{p.customer}** · {p.priority.value}  \n"
                    f"{p.job_type.value} • {p.duration} days • {p.crew_size} crew • {fmt_currency(p.revenue)}"
                )
                if p.issues:
                    st.caption(" · ".join(p.issues))
                day_cols = st.columns(len(WEEK_DAYS))
                for dc, wd in zip(day_cols, WEEK_DAYS):
                    dc.button(
                        wd.name[:3], key=f"add-{wd.name}-{p.id}",
                        help=f"Add to {wd.name}",
                        on_click=store.add_to_schedule, args=(p.id, wd.name),
                    )


def render_margin_analysis(projects):
    st.title("Margin Analysis")

    metrics = calculate_dashboard_metrics(projects)
    costs = cost_breakdown(projects)

    c1, c2, c3 = st.columns(3)
    c1.metric("Total Revenue", fmt_currency(metrics.total_revenue))
    c2.metric("Budgeted Margin", fmt_currency(metrics.budgeted_margin_total), fmt_pct(metrics.budgeted_margin_pct),
              delta_color="off")
    c3.metric("Actual Margin", fmt_currency(metrics.actual_margin_total), fmt_pct(metrics.actual_margin_pct),
              delta_color="off")

    st.subheader("Cost Breakdown")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("#### Labor Costs")
        st.metric("Budgeted", fmt_currency(costs.budgeted_labor))
        st.metric("Actual", fmt_currency(costs.actual_labor),
                  fmt_variance(costs.labor_variance), delta_color="inverse")
    with col2:
        st.markdown("#### Material Costs")
        st.metric("Budgeted", fmt_currency(costs.budgeted_materials))
        st.metric("Actual", fmt_currency(costs.actual_materials),
                  fmt_variance(costs.material_variance), delta_color="inverse")

    st.subheader("Project Performance")
    table = margin_table(projects)
    if len(table) == 0:
        st.info("No projects loaded.")
        return

    chart = alt.Chart(table).mark_bar().encode(
        x=alt.X("Performance:Q", title="Actual vs budgeted margin", scale=alt.Scale(domain=[0, 1]),
                axis=alt.Axis(format="%")),
        y=alt.Y("Customer:N", sort="-x", title=""),
        color=alt.condition(alt.datum.Is_Favorable, alt.value("#43a047"), alt.value("#e53935")),
        tooltip=["Customer",
                 alt.Tooltip("Budgeted_Margin:Q", format="$,.0f", title="Budgeted"),
                 alt.Tooltip("Actual_Margin:Q", format="$,.0f", title="Actual"),
                 alt.Tooltip("Margin_Variance:Q", format="+$,.0f", title="Variance")]
    ).properties(height=max(200, len(table) * 28))
    st.altair_chart(chart, use_container_width=True)

    disp = table[["Customer", "Revenue", "Budgeted_Margin", "Actual_Margin", "Margin_Variance"]].copy()
    disp.columns = ["Project", "Revenue", "Budgeted Margin", "Actual Margin", "Variance"]
    st.dataframe(disp.style.format({
        "Revenue": "${:,.0f}", "Budgeted Margin": "${:,.0f}",
        "Actual Margin": "${:,.0f}", "Variance": "{:+,.0f}",
    }), use_container_width=True)

    with st.expander("📖 Metric definitions", expanded=False):
        defs = pd.DataFrame(METRIC_DEFINITIONS.values())
        st.dataframe(defs, use_container_width=True, hide_index=True)


def render_project_detail(store):
    project_id = st.session_state.get("selected_project")
    project = store.get(project_id) if project_id is not None else None
    if project is None:
        st.info("Select a project from the Projects view.")
        return

    st.button("← Back to Projects", on_click=st.session_state.__setitem__, args=("view", "Projects"))
    st.title(project.customer)
    st.caption(project.status.value)

    m = project_margin(project)
    col1, col2, col3 = st.columns(3)

    with col1:
        st.subheader("Financial Overview")
        st.metric("Total Revenue", fmt_currency(project.revenue))
        st.metric("Deposit Collected", fmt_currency(project.deposit))
        st.metric("Balance Due", fmt_currency(project.balance_due))
        st.metric("Budgeted Margin", f"{fmt_currency(m.budgeted_margin_amount)} ({fmt_pct(project.budgeted_margin)})")
        st.metric("Actual Margin", f"{fmt_currency(m.actual_margin)} ({fmt_pct(project.actual_margin_pct)})",
                  fmt_variance(m.margin_variance, over="gain", under="loss"))
        st.progress(float(m.performance_ratio))

    with col2:
        st.subheader("Cost Details")
        st.markdown("**Labor**")
        st.metric("Budgeted", fmt_currency(project.budgeted_labor))
        st.metric("Actual", fmt_currency(project.actual_labor), fmt_variance(m.labor_variance),
                  delta_color="inverse")
        st.markdown("**Materials**")
        st.metric("Budgeted", fmt_currency(project.budgeted_materials))
        st.metric("Actual", fmt_currency(project.actual_materials), fmt_variance(m.material_variance),
                  delta_color="inverse")

    with col3:
        st.subheader("Project Info")
        st.markdown(f"**Job Type:** {project.job_type.value}")
        st.markdown(f"**Priority:** {project.priority.value}")
        st.markdown(f"**Duration:** {project.duration} days")
        st.markdown(f"**Crew Size:** {project.crew_size} workers")
        due = project.due_date.strftime("%m/%d/%Y") if project.due_date else "N/A"
        st.markdown(f"**Due Date:** {due}" + (" ⚠️ overdue" if project.overdue else ""))
        if project.scheduled_days:
            st.markdown(f"**Scheduled:** {', '.join(project.scheduled_days)}")

    if project.issues:
        st.subheader("Issues Requiring Attention")
        for issue in project.issues:
            st.warning(issue, icon="⚠️")


# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    st.sidebar.header("Disaster Response")
    st.session_state.setdefault("view", "Dashboard")
    st.sidebar.radio("View", VIEWS, key="view")

    st.sidebar.markdown("---")
    st.sidebar.file_uploader("Upload project data", type=["json", "csv", "xlsx"],
                             key="uploaded_file", on_change=reset_store)

    try:
        store = get_store()
    except (OSError, ValueError) as e:
        st.error(f"Error: {e}")
        st.stop()

    st.sidebar.success(f"✅ {len(store):,} projects loaded")

    view = st.session_state["view"]
    if view == "Dashboard":
        render_dashboard(store.projects)
    elif view == "Projects":
        render_projects(store.projects)
    elif view == "Schedule":
        render_schedule(store)
    elif view == "Margin Analysis":
        render_margin_analysis(store.projects)
    else:
        render_project_detail(store)


if __name__ == "__main__":
    main()

"""
Consumption Insights Dashboard

A Streamlit dashboard over the consumption analytics engine.
Run with: streamlit run app.py

Reads CSV exports (categories.csv, items.csv, consumption.csv) from the
directory given in the sidebar (default: data/).
"""

import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from data_sources import CsvExportLoader
from insights_core import AnalysisParams, InsightsOrchestrator, configure_logging
from insights_core.narrative import ExecutiveSummaryWriter

configure_logging()

# Page config
st.set_page_config(
    page_title="Consumption Insights",
    page_icon="📦",
    layout="wide",
)

st.title("📦 Consumption Insights")

TIER_EMOJI = {"CRITICAL": "🔴", "WARNING": "🟠", "MEDIUM": "🟡", "SAFE": "🟢"}
SEVERITY_EMOJI = {"critical": "🔴", "warning": "🟡", "info": "🔵"}


@st.cache_data
def load_data(data_dir: str):
    """Load CSV exports (cached for performance)."""
    return CsvExportLoader(Path(data_dir)).load_all()


# --- Sidebar ---
with st.sidebar:
    st.header("Analysis")
    data_dir = st.text_input("Data directory", value="data")

data = load_data(data_dir)
item_source, record_source = data.sources()
orchestrator = InsightsOrchestrator(item_source, record_source)
available = orchestrator.date_range()

with st.sidebar:
    if available.has_data:
        window = st.date_input(
            "Window",
            value=(available.min_date, available.max_date),
            min_value=available.min_date,
            max_value=available.max_date,
        )
    else:
        window = ()
        st.info("No consumption records found")

    categories = {"All categories": None} | {c.name: c.id for c in data.categories}
    category_name = st.selectbox("Category", list(categories))
    granularity = st.radio("Granularity", ["monthly", "weekly", "daily"], horizontal=True)
    depth = st.radio("Depth", ["basic", "standard", "comprehensive"], index=2)
    min_confidence = st.slider("Anomaly confidence", 0.5, 0.99, 0.7, 0.01)

start_date, end_date = (window[0], window[1]) if len(window) == 2 else (None, None)
params = AnalysisParams(
    start_date=start_date,
    end_date=end_date,
    category_id=categories[category_name],
    granularity=granularity,
    depth=depth,
    min_confidence=min_confidence,
)

with st.spinner("Analyzing..."):
    report = orchestrator.analyze(params)

summary = report.summary
st.caption(
    f"{summary.start_date:%d %b %Y} – {summary.end_date:%d %b %Y} "
    f"({summary.days_in_window} days) | {available.available_months} months of data available"
)

if report.failed_sections:
    st.warning(f"Some sections could not be computed: {', '.join(report.failed_sections)}")

# --- Key Metrics Row ---
st.header("Key Metrics")
col1, col2, col3, col4 = st.columns(4)

with col1:
    st.metric(
        "Total Cost",
        f"{summary.totals.cost:,.2f}",
        delta=f"{summary.record_count:,} records",
        delta_color="off",
    )

with col2:
    st.metric("Units Consumed", f"{summary.totals.quantity:,.0f}", delta=f"{summary.item_count} items", delta_color="off")

with col3:
    health = report.health
    st.metric(
        "Health Score",
        f"{health.overall_score}",
        delta=f"{health.rating} | {health.critical_count} critical",
        delta_color="off",
    )

with col4:
    trend = report.trends.cost_trend
    st.metric(
        "Cost Trend",
        trend.direction.replace("_", " ").title(),
        delta=f"{trend.normalized_slope:+.1%} per period" if trend.points >= 3 else None,
        delta_color="inverse",
    )

st.divider()

# --- Trends ---
left_col, right_col = st.columns([2, 1])

with left_col:
    st.subheader("📈 Consumption Cost")
    totals = report.trends.totals
    if totals:
        fig_trend = go.Figure()
        fig_trend.add_trace(
            go.Scatter(x=[p.label for p in totals], y=[p.cost for p in totals], name="Total", mode="lines+markers")
        )
        for series in report.trends.by_category:
            fig_trend.add_trace(
                go.Scatter(x=[p.label for p in series.points], y=[p.cost for p in series.points], name=series.name)
            )
        fig_trend.update_layout(height=350, margin=dict(t=20, b=20, l=20, r=20), yaxis_title="Cost")
        st.plotly_chart(fig_trend, use_container_width=True)
    else:
        st.info("No buckets in window")

with right_col:
    st.subheader("🥧 Cost by Category")
    distribution = report.cost_distribution
    if distribution and distribution.categories:
        fig_cost = go.Figure(
            data=[
                go.Pie(
                    labels=[c.category_name for c in distribution.categories],
                    values=[c.total_cost for c in distribution.categories],
                    hole=0.4,
                )
            ]
        )
        fig_cost.update_layout(height=350, margin=dict(t=20, b=20, l=20, r=20))
        st.plotly_chart(fig_cost, use_container_width=True)
    else:
        st.info("Cost distribution is computed at standard depth and above")

st.divider()

# --- Recommendations ---
st.subheader("✅ Recommendations")
if report.recommendations:
    recs = pd.DataFrame(
        [
            {
                "Priority": r.priority,
                "Type": r.category.replace("_", " ").title(),
                "Title": r.title,
                "Action": r.action,
                "Impact": r.impact,
                "Effort": r.effort,
            }
            for r in report.recommendations
        ]
    )
    st.dataframe(recs, use_container_width=True, hide_index=True)
elif report.recommendations is None:
    st.info("Recommendations are computed at standard depth and above")
else:
    st.success("Nothing needs attention")

st.divider()

# --- Stock Levels ---
st.subheader("🚨 Stock Levels")
if health.items:
    tier_filter = st.multiselect(
        "Filter by tier:",
        list(TIER_EMOJI),
        default=["CRITICAL", "WARNING", "MEDIUM"],
    )
    rows = [
        {
            "Item": r.item_name,
            "Category": r.category_name,
            "Stock": r.current_quantity,
            "Daily Use": r.observed_daily_rate,
            "Days Left": r.days_remaining,
            "Tier": f"{TIER_EMOJI[r.tier]} {r.tier}",
            "Value": r.inventory_value,
        }
        for r in health.items
        if r.tier in tier_filter
    ]
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        column_config={
            "Daily Use": st.column_config.NumberColumn(format="%.2f"),
            "Value": st.column_config.NumberColumn(format="%.2f"),
        },
    )
    st.caption(f"Total inventory value {health.total_inventory_value:,.2f}")
else:
    st.info("No items")

st.divider()

# --- Movers and Anomalies ---
col1, col2 = st.columns(2)

with col1:
    st.subheader("🏃 Top Movers")
    movers = report.top_movers
    tab_volume, tab_cost, tab_growth = st.tabs(["Volume", "Cost", "Growing"])
    for tab, entries, column in (
        (tab_volume, movers.by_volume, "total_quantity"),
        (tab_cost, movers.by_cost, "total_cost"),
        (tab_growth, movers.fastest_growing, "growth_percent"),
    ):
        with tab:
            if entries:
                fig = go.Figure(
                    data=[
                        go.Bar(
                            x=[getattr(e, column) for e in entries][::-1],
                            y=[e.item_name for e in entries][::-1],
                            orientation="h",
                        )
                    ]
                )
                fig.update_layout(height=300, margin=dict(t=20, b=20, l=20, r=20))
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info("No items")

with col2:
    st.subheader("🔍 Anomalies")
    if report.anomalies:
        for anomaly in report.anomalies[:10]:
            with st.expander(
                f"{anomaly.item_name}: {anomaly.outlier_count} outliers ({anomaly.confidence:.0%})"
            ):
                st.dataframe(
                    pd.DataFrame([o.model_dump() for o in anomaly.outliers]),
                    use_container_width=True,
                    hide_index=True,
                )
    else:
        st.info("No anomalies above the confidence threshold")

# --- Bin Variance ---
if report.bin_variance and report.bin_variance.months:
    st.divider()
    st.subheader("🗓️ First vs Second Half of Month")
    months = report.bin_variance.months
    fig_bins = go.Figure(
        data=[
            go.Bar(name="Days 1-15", x=[m.label for m in months], y=[m.bin1.consumption for m in months]),
            go.Bar(name="Day 16-end", x=[m.label for m in months], y=[m.bin2.consumption for m in months]),
        ]
    )
    fig_bins.update_layout(barmode="group", height=300, margin=dict(t=20, b=20, l=20, r=20))
    st.plotly_chart(fig_bins, use_container_width=True)

# --- Forecast and Seasonality ---
if report.forecast_accuracy or report.seasonality:
    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("🎯 Forecast Accuracy")
        accuracy = report.forecast_accuracy
        if accuracy and accuracy.items_evaluated:
            st.metric("Accuracy", f"{accuracy.accuracy:.2f}%", delta=accuracy.rating, delta_color="off")
            st.caption(
                f"Forecast {accuracy.total_forecast:,.0f} vs actual {accuracy.total_actual:,.0f} "
                f"over {accuracy.items_evaluated} items"
            )
        else:
            st.info("No items carry a forecast rate")
    with col2:
        st.subheader("🌦️ Seasonality")
        seasonality = report.seasonality
        if seasonality and seasonality.monthly_costs:
            fig_season = go.Figure(
                data=[go.Bar(x=list(seasonality.monthly_costs), y=list(seasonality.monthly_costs.values()))]
            )
            fig_season.update_layout(height=250, margin=dict(t=20, b=20, l=20, r=20))
            st.plotly_chart(fig_season, use_container_width=True)
            st.caption(
                f"Peak {seasonality.peak_month}, trough {seasonality.trough_month}, "
                f"variance {seasonality.variance_percent:.1f}%"
                + (" (seasonal)" if seasonality.is_seasonal else "")
                + (f" | {seasonality.years_covered} years combined" if seasonality.years_covered > 1 else "")
            )
        elif seasonality:
            st.info(f"Needs 6 months of data ({seasonality.distinct_months} available)")

# --- Data Quality ---
st.divider()
with st.expander("🔧 Data Quality"):
    reports = dict(data.quality_reports)
    if report.data_quality:
        reports["snapshot"] = report.data_quality
        st.metric("Completeness Score", report.data_quality.score)
    for name, quality in reports.items():
        st.markdown(f"**{quality.source_name}** ({quality.total_rows:,} rows)")
        if quality.issues:
            for issue in quality.issues[:5]:
                st.markdown(f"{SEVERITY_EMOJI[issue.severity]} {issue.column}: {issue.description}")
        else:
            st.markdown("✅ No issues found")

# --- AI Summary ---
if os.environ.get("OPENAI_API_KEY"):
    st.divider()
    st.subheader("🤖 Executive Summary")
    if st.button("Generate summary"):
        with st.spinner("Writing summary..."):
            written = ExecutiveSummaryWriter().generate(report)
        st.markdown(f"### {written.headline}")
        st.markdown(written.summary)
        for action in written.key_actions:
            st.markdown(f"- **{action.urgency.replace('_', ' ')}**: {action.action} _({action.reason})_")

# --- Footer ---
st.divider()
st.caption(
    "Built with Streamlit | "
    f"{len(data.items)} items | {len(data.records):,} consumption records | "
    f"Sections: {', '.join(f'{k}={v.value}' for k, v in report.sections.items())}"
)

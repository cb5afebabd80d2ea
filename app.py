# app.py
import json
import os
import streamlit as st
import plotly.graph_objects as go

from config import FORCE_CONTROLS, FORCE_TITLES, Settings, load_settings
from engine import LayoutEngine
from errors import ConfigurationError, ExplorerError
from filters import ALL

st.set_page_config(page_title="Attribute Network Explorer (Web)", layout="wide")


def _settings() -> Settings:
    path = os.environ.get("EXPLORER_SETTINGS")
    try:
        return load_settings(path)
    except ConfigurationError as e:
        st.error(str(e))
        st.stop()


def _load_engine(raw, source: str, settings: Settings):
    old = st.session_state.get("engine")
    if old is not None:
        old.dispose()
    viewport = (settings.viewer.width, settings.viewer.height)
    st.session_state.engine = LayoutEngine.create(raw, viewport=viewport, settings=settings)
    st.session_state.source = source


settings = _settings()

# ----- Dataset -----
uploaded = st.sidebar.file_uploader("Dataset (JSON)", type=["json"])
try:
    if uploaded is not None and st.session_state.get("source") != uploaded.name:
        _load_engine(json.load(uploaded), uploaded.name, settings)
    elif "engine" not in st.session_state and os.path.exists(settings.viewer.dataset_path):
        with open(settings.viewer.dataset_path, "r", encoding="utf-8") as f:
            _load_engine(json.load(f), settings.viewer.dataset_path, settings)
except json.JSONDecodeError as e:
    st.error(f"Dataset is not valid JSON: {e}")
    st.stop()
except ExplorerError as e:
    st.error(f"Could not load the dataset: {e}")
    st.stop()

engine: LayoutEngine = st.session_state.get("engine")
if engine is None:
    st.info("Upload a dataset to begin.")
    st.stop()

col_ctrl, col_plot = st.columns([1, 4], gap="large")

# ----- Filters (cascading) -----
with col_ctrl:
    st.markdown("### Filters")
    opts = engine.initial_options()
    sel = engine.filters.selection

    def pick(label, attribute, values, current):
        choices = [ALL] + list(values)
        index = choices.index(current) if current in choices else 0
        return st.selectbox(label, choices, index=index, key=f"filter_{attribute}")

    state = pick("State", "state", opts["state"], sel.state)
    if state != engine.filters.selection.state:
        engine.on_filter_change("state", state)
    city = pick("City", "city", engine.filters.city_options(state), engine.filters.selection.city)
    if city != engine.filters.selection.city:
        engine.on_filter_change("city", city)
    region = pick("Region", "region", engine.filters.region_options(state, city),
                  engine.filters.selection.region)
    if region != engine.filters.selection.region:
        engine.on_filter_change("region", region)
    for attribute in ("vendor", "type"):
        value = pick(attribute.capitalize(), attribute, opts[attribute],
                     getattr(engine.filters.selection, attribute))
        if value != getattr(engine.filters.selection, attribute):
            engine.on_filter_change(attribute, value)

    st.divider()
    st.markdown("### Forces")
    p = engine.properties
    changes = []
    for force, controls in FORCE_CONTROLS.items():
        with st.expander(FORCE_TITLES[force], expanded=force in ("charge", "link")):
            for name, label, kind, lo, hi, step in controls:
                current = getattr(p.record(force), name)
                key = f"force_{force}_{name}"
                if kind == "bool":
                    value = st.checkbox(label, value=current, key=key)
                elif kind == "int":
                    value = st.number_input(label, min_value=int(lo), max_value=max(int(hi), current),
                                            value=current, step=int(step), key=key)
                else:
                    # Widen the range when settings start outside it
                    value = st.slider(label, min(lo, current), max(hi, current), float(current), step, key=key)
                changes.append((force, name, value))
    new_props = p
    try:
        for force, name, value in changes:
            if getattr(new_props.record(force), name) != value:
                new_props = new_props.with_change(force, name, value)
    except ConfigurationError as e:
        st.error(str(e))
        new_props = p
    if new_props != p:
        engine.set_properties(new_props)
    if st.button("Reset Layout"):
        engine.reset()

    stats = engine.get_stats()
    st.markdown(
        f"Nodes: {stats['visible_nodes']} / {stats['nodes']}  \n"
        f"Links: {stats['visible_links']} / {stats['edges']}  \n"
        f"Springs: {stats['effective_links']}"
    )

# ----- Settle and plot -----
engine.simulation.run(settings.viewer.max_settle_ticks)
style = engine.display_style()

with col_plot:
    fig = go.Figure()
    for e in engine.data.edges:
        if not e.isVisible():
            continue
        s, t = e.getSource(), e.getTarget()
        fig.add_trace(go.Scatter(
            x=[s.x, t.x], y=[s.y, t.y], mode="lines",
            line=dict(color=engine.link_colors.color_for(e), width=style.link_width),
            opacity=style.link_opacity, hoverinfo="skip", showlegend=False,
        ))

    shown = [n for n in engine.data.nodes if n.isVisible()]
    fig.add_trace(go.Scatter(
        x=[n.x for n in shown], y=[n.y for n in shown], mode="markers",
        text=[f"{n.getId()} ({n.state}, {n.city}, {n.region}, {n.vendor}, {n.type})" for n in shown],
        hoverinfo="text",
        marker=dict(
            size=2 * style.node_radius + 2,
            color=[engine.node_colors.color_for(n) for n in shown],
            line=dict(width=style.node_stroke_width, color=style.node_stroke),
        ),
        showlegend=False,
    ))
    fig.update_yaxes(scaleanchor="x", scaleratio=1, autorange="reversed")
    fig.update_layout(
        margin=dict(l=20, r=20, t=10, b=10),
        xaxis=dict(visible=False), yaxis=dict(visible=False),
        dragmode="pan", height=700,
    )
    st.plotly_chart(fig, use_container_width=True)
    st.caption(f"alpha = {engine.alpha:.4f} ({engine.state.value}) after {engine.simulation.tick_count} ticks")

"""
Steel Supply Chain Optimization Calculator - Interactive Dashboard

Adjust inputs, define custom parameters and formulas, and explore how
profit responds as sales move between 65% and 100% of production.
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.exceptions import InvalidFormulaError, InvalidNameError, InvalidValueError
from models.formatting import format_currency, format_number
from models.formulas import FormulaRegistry, SEEDED_IDS
from models.inputs import BUILTIN_INPUTS
from analysis.constraints import OperationalLimits
from analysis.sensitivity import to_frame
from analysis.snapshot import AppState, DerivedState, recompute

# Page configuration
st.set_page_config(
    page_title="Steel Supply Chain Calculator",
    page_icon="🏭",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Inputs edited as text in the sidebar, including the linked percentages
INPUT_WIDGET_FIELDS = [f.attr for f in BUILTIN_INPUTS] + [
    'sales_volume_percent', 'inventory_volume_percent'
]


def _as_text(value: float) -> str:
    return f"{value:.4f}".rstrip('0').rstrip('.')


def _input_key(attr: str) -> str:
    return f"input_{attr}"


def _sync_input_widgets(state: AppState):
    """Push current input values into the sidebar widgets."""
    for attr in INPUT_WIDGET_FIELDS:
        st.session_state[_input_key(attr)] = _as_text(getattr(state.inputs, attr))


def _on_input_change(attr: str):
    state = st.session_state.app_state
    updated = state.inputs.set_text(attr, st.session_state[_input_key(attr)])
    if updated is None:
        st.session_state.input_warning = "Only digits and a single decimal point are allowed."
    else:
        state.inputs = updated
        st.session_state.input_warning = None
    _sync_input_widgets(state)


def init_state():
    """Create the application state on first run."""
    if 'app_state' not in st.session_state:
        st.session_state.app_state = AppState(
            formulas=FormulaRegistry.with_defaults(strict_syntax=True)
        )
        st.session_state.input_warning = None


def _input_widget(attr: str, label: str):
    st.sidebar.text_input(
        label,
        key=_input_key(attr),
        on_change=_on_input_change,
        args=(attr,)
    )


def create_sidebar(state: AppState):
    """Create the input control sidebar."""
    st.sidebar.title("🎛️ Input Parameters")
    st.sidebar.caption("Adjust the core financial and environmental model assumptions")

    # Unrendered widgets lose their keys between runs, so refill them every run
    _sync_input_widgets(state)

    fields = {f.attr: f for f in BUILTIN_INPUTS}
    for attr in ('selling_price', 'manufacturing_cost_per_ton', 'storage_cost_percent',
                 'transportation_cost_percent', 'sustainability_cost_per_ton_co2',
                 'co2_emission_factor'):
        field = fields[attr]
        _input_widget(attr, f"{field.label} ({field.unit})")

    st.sidebar.divider()
    st.sidebar.markdown("### 🏭 Operational Inputs")
    _input_widget('production_volume', "Production Volume (tons)")

    sales_mode = st.sidebar.radio("Sales Volume", ["Tons", "%"], horizontal=True, key="sales_mode")
    if sales_mode == "Tons":
        _input_widget('sales_volume', "Sales Volume (tons)")
    else:
        _input_widget('sales_volume_percent', "Sales Volume (% of production)")

    inventory_mode = st.sidebar.radio("Inventory Volume", ["Tons", "%"], horizontal=True,
                                      key="inventory_mode")
    if inventory_mode == "Tons":
        _input_widget('inventory_volume', "Inventory Volume (tons)")
    else:
        _input_widget('inventory_volume_percent', "Inventory Volume (% of production)")

    if st.session_state.input_warning:
        st.sidebar.warning(st.session_state.input_warning)

    st.sidebar.divider()

    with st.sidebar.expander("⚙️ Hyperparameters"):
        with st.form("limits_form"):
            limits = state.limits
            max_production = st.number_input("Production Capacity (tons)",
                                             min_value=0.0, value=float(limits.max_production))
            max_sales = st.number_input("Max Sales Volume (tons)",
                                        min_value=0.0, value=float(limits.max_sales))
            max_inventory = st.number_input("Max Inventory Space (tons)",
                                            min_value=0.0, value=float(limits.max_inventory))
            max_emissions = st.number_input("Max CO₂ Emissions (tons)",
                                            min_value=0.0, value=float(limits.max_emissions))
            if st.form_submit_button("Save changes"):
                state.limits = OperationalLimits(
                    max_inventory=max_inventory,
                    max_production=max_production,
                    max_sales=max_sales,
                    max_emissions=max_emissions,
                )
                st.rerun()

    # Reset button
    if st.sidebar.button("🔄 Reset to Defaults"):
        del st.session_state.app_state
        st.rerun()


def render_results_tab(state: AppState, derived: DerivedState):
    """Render results and the constraints checker."""
    st.header("📊 Results")

    headlines = derived.aggregate.headlines
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Revenue", format_currency(headlines.revenue))
    with col2:
        deduction_note = None
        if headlines.profit_deductions:
            deduction_note = f"incl. {format_currency(headlines.profit_deductions)} deductions"
        st.metric("Total Cost", format_currency(headlines.total_cost),
                  delta=deduction_note, delta_color="off")
    with col3:
        st.metric("Net Profit", format_currency(headlines.net_profit),
                  delta="profit" if headlines.net_profit >= 0 else "loss",
                  delta_color="normal" if headlines.net_profit >= 0 else "inverse")

    rows = []
    for result in derived.aggregate.display_results():
        if result.ok:
            value = (format_currency(result.value) if result.unit == '₹'
                     else f"{format_number(result.value)} {result.unit}")
        else:
            value = f"⚠️ {result.error}"
        rows.append({
            'Formula': result.name,
            'Value': value,
            'Deducted from profit': "✓" if result.subtract_from_profit else "",
        })
    st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)

    st.divider()
    st.subheader("✅ Constraints Checker")
    st.caption("Feasibility of the current operational inputs")

    inputs, limits, status = state.inputs, state.limits, derived.constraints
    checks = [
        ("Production Volume", status.production, inputs.production_volume,
         limits.max_production, "tons"),
        ("Sales Volume", status.sales, inputs.sales_volume, limits.max_sales, "tons"),
        ("Inventory Space", status.inventory, inputs.inventory_volume,
         limits.max_inventory, "tons"),
        ("Total CO₂ Emission", status.emissions, headlines.total_emissions,
         limits.max_emissions, "tons CO₂"),
    ]
    for label, ok, current, limit, unit in checks:
        text = f"**{label}**: {format_number(current)} / {format_number(limit)} {unit}"
        if ok:
            st.success(text, icon="✅")
        else:
            st.error(text, icon="⚠️")


def render_sensitivity_tab(state: AppState, derived: DerivedState):
    """Render the sales volume sensitivity chart and table."""
    st.header("🔬 Sales Volume Sensitivity")
    st.caption(
        f"Sales swept from {state.sweep_range.start}% to {state.sweep_range.stop}% "
        "of production; break-even points are interpolated between samples"
    )

    if not derived.sweep:
        st.info("Set a production volume above zero to run the sensitivity analysis.")
        return

    df = to_frame(derived.sweep)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df['sales_percent'], y=df['revenue'],
        mode='lines', name='Revenue',
        line=dict(color='#4e79a7', width=2)
    ))
    fig.add_trace(go.Scatter(
        x=df['sales_percent'], y=df['total_cost'],
        mode='lines', name='Total Cost',
        line=dict(color='#f28e2b', width=2)
    ))
    fig.add_trace(go.Scatter(
        x=df['sales_percent'], y=df['net_profit_positive'],
        mode='lines', name='Net Profit',
        line=dict(color='#00cc66', width=3), connectgaps=False
    ))
    fig.add_trace(go.Scatter(
        x=df['sales_percent'], y=df['net_profit_negative'],
        mode='lines', name='Net Loss',
        line=dict(color='#ff4444', width=3), connectgaps=False
    ))

    break_even = df[df['is_break_even']]
    if not break_even.empty:
        fig.add_trace(go.Scatter(
            x=break_even['sales_percent'], y=break_even['net_profit'],
            mode='markers', name='Break-even',
            marker=dict(color='gold', size=14, symbol='star')
        ))
        for x in break_even['sales_percent']:
            fig.add_vline(x=x, line_dash="dash", line_color="gold", opacity=0.5)

    fig.add_hline(y=0, line_color="grey", opacity=0.5)
    fig.update_layout(
        xaxis_title="Sales (% of production)",
        yaxis_title="₹",
        template="plotly_dark",
        height=500
    )
    st.plotly_chart(fig, width="stretch")

    if derived.break_even is not None:
        point = derived.break_even
        st.metric("Break-even Sales", f"{point.sales_percent:.2f}%",
                  delta=f"{format_number(point.sales_volume)} tons", delta_color="off")

    display_df = pd.DataFrame({
        'Sales %': df['sales_percent'].map(lambda x: f"{x:.2f}"),
        'Sales (t)': df['sales_volume'].map(format_number),
        'Inventory (t)': df['inventory_volume'].map(format_number),
        'Revenue': df['revenue'].map(format_currency),
        'Manufacturing': df['manufacturing_cost'].map(format_currency),
        'Sustainability': df['sustainability_cost'].map(format_currency),
        'Total Cost': df['total_cost'].map(format_currency),
        'Net Profit': df['net_profit'].map(format_currency),
        'CO₂ (t)': df['total_emissions'].map(format_number),
        'Break-even': df['is_break_even'].map(lambda b: "★" if b else ""),
    })
    st.dataframe(display_df, width="stretch", hide_index=True)


def render_formulas_tab(state: AppState):
    """Add, edit and delete formulas."""
    st.header("🧮 Formulas")
    st.caption("Formulas may reference builtin inputs and custom parameters by name")

    with st.expander("➕ Add Formula"):
        with st.form("add_formula", clear_on_submit=True):
            name = st.text_input("Name")
            expression = st.text_input("Expression", placeholder="sellingPrice * salesVolume")
            unit = st.text_input("Unit", value="₹")
            description = st.text_input("Description")
            deduct = st.checkbox("Subtract from net profit")
            if st.form_submit_button("Add"):
                try:
                    state.formulas.add(name, expression, unit, description, deduct)
                    st.rerun()
                except InvalidFormulaError as exc:
                    st.error(str(exc))

    formulas = list(state.formulas)
    if not formulas:
        st.info("No formulas defined.")
        return

    selected = st.selectbox(
        "Edit formula",
        formulas,
        format_func=lambda f: f"{f.name} ({'builtin' if f.id in SEEDED_IDS else 'custom'})"
    )
    with st.form(f"edit_formula_{selected.id}"):
        name = st.text_input("Name", value=selected.name)
        expression = st.text_area("Expression", value=selected.expression)
        unit = st.text_input("Unit", value=selected.unit)
        description = st.text_input("Description", value=selected.description)
        deduct = st.checkbox("Subtract from net profit", value=selected.subtract_from_profit)
        save_col, delete_col = st.columns(2)
        save = save_col.form_submit_button("💾 Save")
        delete = delete_col.form_submit_button("🗑️ Delete")

    if save:
        try:
            state.formulas.edit(selected.id, name=name, expression=expression, unit=unit,
                                description=description, subtract_from_profit=deduct)
            st.rerun()
        except InvalidFormulaError as exc:
            st.error(str(exc))
    elif delete:
        state.formulas.remove(selected.id)
        st.rerun()


def render_parameters_tab(state: AppState):
    """Add, edit and delete custom parameters."""
    st.header("🔧 Custom Parameters")

    with st.expander("➕ Add Parameter"):
        with st.form("add_parameter", clear_on_submit=True):
            label = st.text_input("Label", placeholder="Discount Rate")
            name = st.text_input("Name (used in formulas)", placeholder="discountRate")
            value = st.text_input("Value", value="0")
            unit = st.text_input("Unit")
            description = st.text_input("Description")
            if st.form_submit_button("Add"):
                try:
                    state.parameters.add(label, name, value, unit, description)
                    st.rerun()
                except (InvalidNameError, InvalidValueError) as exc:
                    st.error(str(exc))

    builtin_df = pd.DataFrame([
        {'Name': f.name, 'Label': f.label,
         'Value': format_number(getattr(state.inputs, f.attr)), 'Unit': f.unit}
        for f in BUILTIN_INPUTS
    ])
    with st.expander("Builtin parameters (reserved names)"):
        st.dataframe(builtin_df, width="stretch", hide_index=True)

    if not len(state.parameters):
        st.info("No custom parameters yet.")
        return

    for param in list(state.parameters):
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(f"**{param.label}** `{param.name}`")
            if param.description:
                st.caption(param.description)
        with col2:
            text = st.text_input(
                f"Value ({param.unit})" if param.unit else "Value",
                value=param.value,
                key=f"param_value_{param.id}"
            )
            if text != param.value and not state.parameters.set_value(param.id, text):
                st.warning("Only digits and a single decimal point are allowed.")
        with col3:
            if st.button("🗑️", key=f"param_delete_{param.id}"):
                state.parameters.remove(param.id)
                st.rerun()

        with st.expander(f"✏️ Edit {param.name}"):
            with st.form(f"edit_parameter_{param.id}"):
                label = st.text_input("Label", value=param.label)
                name = st.text_input("Name (used in formulas)", value=param.name)
                value = st.text_input("Value", value=param.value)
                unit = st.text_input("Unit", value=param.unit)
                description = st.text_input("Description", value=param.description)
                save = st.form_submit_button("💾 Save")

            if save:
                try:
                    state.parameters.edit(param.id, label=label, name=name, value=value,
                                          unit=unit, description=description)
                    st.rerun()
                except (InvalidNameError, InvalidValueError) as exc:
                    st.error(str(exc))


def main():
    """Main application entry point."""
    init_state()
    state = st.session_state.app_state

    st.title("🏭 Steel Supply Chain Optimization Calculator")
    st.caption("Adjust parameters to analyze costs, profit, and operational constraints")

    create_sidebar(state)

    tabs = st.tabs([
        "📊 Results",
        "🔬 Sensitivity",
        "🧮 Formulas",
        "🔧 Parameters"
    ])

    # Parameter and formula edits happen while rendering, so those tabs go
    # first and results are derived afterwards.
    with tabs[2]:
        render_formulas_tab(state)
    with tabs[3]:
        render_parameters_tab(state)

    derived = recompute(state)
    with tabs[0]:
        render_results_tab(state, derived)
    with tabs[1]:
        render_sensitivity_tab(state, derived)


if __name__ == "__main__":
    main()

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import json
from datetime import date

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from tracker.async_reports import dashboard_snapshot
from tracker.auth import RegistrationError, UserStore
from tracker.categories import CATEGORY_COLORS, expense_category_names
from tracker.config import configure_logging, load_settings, users_path
from tracker.domain import IncomeSource, RecordFilter
from tracker.events import RECORD_EVENTS, EventBus, negative_balance_handler, register_default_handlers
from tracker.services import FinanceService
from tracker.storage import CsvStore, InMemoryStore, RecordValidationError
from tracker.tools import ToolInputError, ToolRegistry

st.set_page_config(page_title="Expense Tracker", layout="wide")

settings = load_settings()
configure_logging(settings)
users = UserStore(users_path(settings))


def records_df(records) -> pd.DataFrame:
    rows = [
        {
            "id": r.id,
            "date": r.date,
            "amount": r.amount,
            "category": r.label,
            "description": r.description,
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=["id", "date", "amount", "category", "description"])


def money(x: float) -> str:
    return f"${x:,.2f}"


# --- login

if "user" not in st.session_state:
    st.session_state.user = None

if st.session_state.user is None:
    st.title("💸 Expense Tracker")
    tab_login, tab_register = st.tabs(["Log in", "Sign up"])
    with tab_login:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Log in"):
                user = users.login(email, password)
                if user:
                    st.session_state.user = user
                    st.rerun()
                else:
                    st.error("Invalid email or password")
    with tab_register:
        with st.form("register_form"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="reg_email")
            password = st.text_input("Password", type="password", key="reg_password")
            if st.form_submit_button("Create account"):
                try:
                    st.session_state.user = users.register(email, password, name)
                    st.rerun()
                except RegistrationError as e:
                    st.error(str(e))
    st.stop()

user = st.session_state.user

# --- per-session store, bus and service

if "alerts" not in st.session_state:
    st.session_state.alerts = []

if "service" not in st.session_state:
    bus = EventBus()
    register_default_handlers(bus)

    def collect_alerts(event, payload):
        result = negative_balance_handler(event, payload)
        if "alert" in result:
            st.session_state.alerts.append({
                "event": event.name,
                "message": result["alert"],
                "timestamp": pd.Timestamp.now().strftime("%H:%M:%S"),
            })
        return result

    for name in RECORD_EVENTS:
        bus.subscribe(name, collect_alerts)

    if settings.store == "csv":
        store, scope = CsvStore(settings.data_dir), user.id
    else:
        # seed records are not owned by any user
        store, scope = InMemoryStore.from_seed(str(settings.seed_path)), None
    st.session_state.service = FinanceService(
        store, user_id=scope, bus=bus, months=settings.months, recent_limit=settings.recent_limit
    )

service: FinanceService = st.session_state.service

st.sidebar.markdown("### 👤 Profile")
st.sidebar.caption(f"Hello, {user.name}!")
if st.sidebar.button("Log out"):
    for key in ("user", "service", "alerts"):
        st.session_state.pop(key, None)
    st.rerun()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "📊 Analytics", "📅 Calendar", "🤖 Tools"]
)

if st.session_state.alerts:
    for alert in reversed(st.session_state.alerts[-3:]):
        st.sidebar.warning(f"[{alert['timestamp']}] {alert['message']}")

if menu == "🏠 Overview":
    st.title("🏠 Overview")
    snap = asyncio.run(dashboard_snapshot(service))
    bal = snap["balance"]
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Total Income", money(bal.total_income))
    k2.metric("Total Expenses", money(bal.total_expenses))
    k3.metric("Balance", money(bal.balance))
    k4.metric("Savings Rate", f"{bal.savings_rate:.1f}%")

    months = list(reversed(snap["monthly"]))
    if months:
        fig = go.Figure()
        x = [m.month for m in months]
        fig.add_trace(go.Scatter(x=x, y=[m.income for m in months], mode="lines+markers", name="Income"))
        fig.add_trace(go.Scatter(x=x, y=[m.expenses for m in months], mode="lines+markers", name="Expenses"))
        fig.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig, use_container_width=True)

    st.subheader("🕒 Recent Expenses")
    recent = snap["recent"]
    if recent:
        disp = records_df(recent).drop(columns=["id"])
        disp["amount"] = disp["amount"].map(money)
        st.table(disp.reset_index(drop=True))
    else:
        st.info("No expenses yet.")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    col_exp, col_inc = st.columns(2)
    with col_exp:
        st.subheader("➕ Add Expense")
        with st.form("expense_form", clear_on_submit=True):
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            day = st.date_input("Date", value=date.today())
            category = st.selectbox("Category", expense_category_names())
            description = st.text_input("Description")
            if st.form_submit_button("Add Expense"):
                try:
                    service.add_expense(amount, day.isoformat(), category, description)
                    st.success("✅ Expense added!")
                    st.rerun()
                except RecordValidationError as e:
                    st.error(f"❌ {e}")
    with col_inc:
        st.subheader("➕ Add Income")
        with st.form("income_form", clear_on_submit=True):
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f", key="inc_amount")
            day = st.date_input("Date", value=date.today(), key="inc_date")
            source = st.selectbox("Source", [s.value for s in IncomeSource])
            description = st.text_input("Description", key="inc_desc")
            if st.form_submit_button("Add Income"):
                try:
                    service.add_income(amount, day.isoformat(), source, description)
                    st.success("✅ Income added!")
                    st.rerun()
                except RecordValidationError as e:
                    st.error(f"❌ {e}")

    st.divider()
    st.subheader("🔎 Expenses")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        start = st.text_input("Start Date (YYYY-MM-DD)", value="")
        end = st.text_input("End Date (YYYY-MM-DD)", value="")
    with c2:
        category = st.selectbox("Category", ["All"] + expense_category_names(), key="flt_cat")
    with c3:
        min_amount = st.text_input("Min amount", value="")
        max_amount = st.text_input("Max amount", value="")
    with c4:
        query = st.text_input("Search", value="")

    expenses = service.get_expenses({
        "start_date": start,
        "end_date": end,
        "category": None if category == "All" else category,
        "min_amount": min_amount,
        "max_amount": max_amount,
        "search_query": query,
    })
    if expenses:
        df = records_df(expenses)
        st.dataframe(df, use_container_width=True)
        st.caption(f"{len(expenses)} expenses, total {money(sum(e.amount for e in expenses))}")
        to_delete = st.multiselect("Select expenses to delete", df["id"].tolist())
        if to_delete and st.button("🗑 Delete selected"):
            n = service.delete_expenses(to_delete)
            st.success(f"Deleted {n} expense(s)")
            st.rerun()
        st.download_button("⬇ Download CSV", df.to_csv(index=False), file_name="expenses_filtered.csv")
    else:
        st.info("No expenses match the selected filters")

    st.subheader("💰 Income")
    income = service.get_income()
    if income:
        st.dataframe(records_df(income).rename(columns={"category": "source"}), use_container_width=True)
    else:
        st.info("No income recorded")

elif menu == "📊 Analytics":
    st.title("📊 Analytics")
    col_a, col_b = st.columns(2)
    with col_a:
        start = st.text_input("Start Date (YYYY-MM-DD)", value="", key="an_start")
    with col_b:
        end = st.text_input("End Date (YYYY-MM-DD)", value="", key="an_end")
    flt = RecordFilter(start_date=start or None, end_date=end or None)

    st.subheader("Spending by category")
    breakdown = service.get_spending_by_category(flt)
    if breakdown:
        df_cat = pd.DataFrame([
            {"Category": b.category, "Amount": b.amount, "Percentage": round(b.percentage, 2)}
            for b in breakdown
        ])
        fig_cat = px.pie(
            df_cat, values="Amount", names="Category",
            color="Category", color_discrete_map=CATEGORY_COLORS,
        )
        fig_cat.update_layout(height=350)
        st.plotly_chart(fig_cat, use_container_width=True)
        st.table(df_cat)
    else:
        st.info("No expense data for this period")

    st.divider()
    st.subheader("Trends")
    trends = service.get_spending_trends(flt)
    if trends:
        fig_tr = go.Figure()
        x = [p.date for p in trends]
        fig_tr.add_trace(go.Scatter(x=x, y=[p.income for p in trends], mode="lines+markers", name="Income"))
        fig_tr.add_trace(go.Scatter(x=x, y=[p.expenses for p in trends], mode="lines+markers", name="Expenses"))
        fig_tr.add_trace(go.Bar(x=x, y=[p.balance for p in trends], name="Balance", opacity=0.4))
        fig_tr.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_tr, use_container_width=True)

    st.divider()
    st.subheader("Monthly breakdown")
    n_months = st.number_input("Months", min_value=1, max_value=24, value=settings.months)
    monthly = service.get_monthly_breakdown(int(n_months))
    if monthly:
        st.table(pd.DataFrame([
            {
                "Month": m.month,
                "Income": money(m.income),
                "Expenses": money(m.expenses),
                "Savings": money(m.savings),
                "Top categories": ", ".join(f"{c.name} ({money(c.amount)})" for c in m.top_categories),
            }
            for m in monthly
        ]))
    else:
        st.info("No data to analyze")

elif menu == "📅 Calendar":
    st.title("📅 Calendar")
    today = date.today()
    c1, c2 = st.columns(2)
    year = c1.number_input("Year", min_value=2000, max_value=2100, value=today.year)
    month = c2.number_input("Month", min_value=1, max_value=12, value=today.month)

    daily = service.get_daily_spending(int(year), int(month))
    if daily:
        df_day = pd.DataFrame([{"Day": d.day, "Amount": d.amount} for d in daily])
        fig_d = px.bar(df_day, x="Day", y="Amount", title=f"Daily spending {int(year)}-{int(month):02d}",
                       template="plotly_dark")
        st.plotly_chart(fig_d, use_container_width=True)
    else:
        st.info("No spending recorded this month")

    st.subheader("Weekly transactions")
    by_week = service.get_expenses_by_week()
    for i, week in enumerate(service.get_weekly_summary()):
        label = f"{week.week} · {week.count} transaction{'s' if week.count != 1 else ''} · {money(week.total)}"
        with st.expander(label, expanded=(i == 0)):
            if week.top_categories:
                st.caption("Top: " + ", ".join(f"{c.name} {money(c.amount)}" for c in week.top_categories))
            disp = records_df(by_week.get(week.week, [])).drop(columns=["id"])
            disp["amount"] = disp["amount"].map(money)
            st.table(disp.reset_index(drop=True))

elif menu == "🤖 Tools":
    st.title("🤖 Tools")
    registry = ToolRegistry(service)
    name = st.selectbox("Tool", registry.names())
    tool = registry.get(name)
    st.caption(tool.description)
    with st.expander("Input schema"):
        st.json(tool.input_model.model_json_schema(by_alias=True))
    raw_args = st.text_area("Arguments (JSON)", value="{}")
    if st.button("Run tool"):
        try:
            st.json(registry.call(name, json.loads(raw_args or "{}")))
        except json.JSONDecodeError as e:
            st.error(f"Arguments are not valid JSON: {e}")
        except ToolInputError as e:
            st.error(str(e))

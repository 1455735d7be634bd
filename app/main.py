"""
Streamlit Frontend for Personal Budget Manager

This is the dashboard people use day to day to record what they spend.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number on screen comes from the ledger, never computed here
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The UI holds no budget rules:
- It sends what the user typed to the ledger
- The ledger accepts or rejects it
- The page shows the result (and any warning)
"""

from datetime import date

import streamlit as st

from budget_manager.config import validate_all_settings
from budget_manager.ledger import (
    BudgetExceededError,
    ExpenseNotFoundError,
    LedgerEngine,
    LedgerError,
)
from budget_manager.models import ALL_CATEGORIES, BudgetBand, SortOrder
from budget_manager.orchestrator import BudgetApp, create_app_components
from budget_manager.services.auth import AuthError
from budget_manager.services.export import export_expenses_csv
from budget_manager.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Personal Budget Manager",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)

BAND_ICONS = {
    BudgetBand.GREEN: "🟢",
    BudgetBand.ORANGE: "🟠",
    BudgetBand.RED: "🔴",
}


@st.cache_resource
def get_app() -> BudgetApp:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except StorageError as e:
        st.error(f"Failed to open storage, changes will not be saved: {e}")
        return create_app_components(use_storage=False)


def get_ledger(app: BudgetApp):
    """The ledger of the logged-in user, or None."""
    if "ledger" not in st.session_state:
        try:
            st.session_state.ledger = app.resume()
        except StorageError as e:
            st.error(f"Could not load your saved budget: {e}")
            st.session_state.ledger = None
    return st.session_state.ledger


def main():
    """Main application entry point."""
    app = get_app()
    ledger = get_ledger(app)

    st.sidebar.title("💰 Budget Manager")
    st.sidebar.markdown("---")

    if ledger is None:
        render_login_page(app)
        return

    st.sidebar.markdown(f"Logged in as **{ledger.session.username}**")
    if st.sidebar.button("🚪 Log out"):
        app.logout()
        st.session_state.ledger = None
        st.rerun()

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Expense", "📋 Expenses", "🏷️ Categories", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Set your income and budget
        2. Give each category a budget
        3. Record expenses as you spend

        An expense that would go over its category budget is refused.
        """
    )

    if page == "📊 Dashboard":
        render_dashboard_page(ledger)
    elif page == "➕ Add Expense":
        render_add_expense_page(ledger)
    elif page == "📋 Expenses":
        render_expenses_page(ledger)
    elif page == "🏷️ Categories":
        render_categories_page(ledger)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_login_page(app: BudgetApp):
    """Render login and registration."""
    st.title("🔐 Welcome")
    st.markdown("Log in to see your budget, or create an account.")

    login_tab, register_tab = st.tabs(["Log in", "Register"])

    with login_tab:
        with st.form("login"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Log in", type="primary")
        if submitted:
            try:
                session = app.auth.login(username, password)
                st.session_state.ledger = app.open_ledger(session)
                st.rerun()
            except (AuthError, StorageError) as e:
                st.error(str(e))

    with register_tab:
        with st.form("register"):
            new_username = st.text_input("Choose a username")
            email = st.text_input("Email")
            new_password = st.text_input("Choose a password", type="password")
            created = st.form_submit_button("Create account")
        if created:
            try:
                app.auth.register(new_username, email, new_password)
                st.success("Account created. You can log in now.")
            except AuthError as e:
                st.error(str(e))


def render_warnings(ledger: LedgerEngine):
    """Show persistent rejection warnings with a dismiss button each."""
    for category, message in ledger.warnings.items():
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(f"""
            <div class="error-box">
                <p>{message}</p>
            </div>
            """, unsafe_allow_html=True)
        with col2:
            if st.button("Dismiss", key=f"dismiss-{category}"):
                ledger.clear_warning(category)
                st.rerun()


def render_dashboard_page(ledger: LedgerEngine):
    """Render income, budget and per-category progress."""
    st.title("📊 Dashboard")

    summary = ledger.summary()

    col1, col2 = st.columns(2)
    with col1:
        income = st.number_input(
            "Monthly Income",
            value=float(summary.income),
            min_value=0.0,
            step=10.0,
            format="%.2f",
        )
    with col2:
        budget = st.number_input(
            "Overall Budget",
            value=float(summary.overall_budget),
            min_value=0.0,
            step=10.0,
            format="%.2f",
        )
    if st.button("💾 Save figures"):
        try:
            ledger.set_income(income)
            ledger.set_overall_budget(budget)
            st.rerun()
        except StorageError as e:
            st.error(f"Could not save: {e}")

    st.markdown("---")

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Expenses", f"{summary.total_expenses:,.2f}")
    col2.metric("Balance", f"{summary.balance:,.2f}")
    col3.metric("Expenses Recorded", summary.expense_count)

    st.progress(
        float(summary.overall_percentage) / 100,
        text=f"Overall budget used: {summary.overall_percentage}%",
    )
    if summary.alert:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ {summary.alert}</h4>
        </div>
        """, unsafe_allow_html=True)

    render_warnings(ledger)

    st.markdown("### By Category")
    for status in summary.categories:
        label = "budget" if status.has_explicit_budget else "default budget"
        st.markdown(
            f"{BAND_ICONS[status.band]} **{status.category}**: "
            f"{status.total:,.2f} of {status.ceiling:,.2f} ({label})"
        )
        st.progress(float(status.percentage) / 100)
        if status.message:
            st.caption(status.message)

    totals = ledger.totals_by_category()
    if totals:
        st.markdown("### Where the Money Went")
        st.bar_chart(
            {"Spent": {category: float(total) for category, total in totals.items()}},
        )


def render_add_expense_page(ledger: LedgerEngine):
    """Render the add-expense form."""
    st.title("➕ Add Expense")

    if not ledger.categories:
        st.info("Add a category first on the Categories page.")
        return

    with st.form("add_expense", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
        with col2:
            spent_on = st.date_input("Date *", value=date.today())
        with col3:
            category = st.selectbox("Category *", options=list(ledger.categories))
        submitted = st.form_submit_button("✅ Add Expense", type="primary")

    if submitted:
        try:
            expense = ledger.add_expense(
                {"amount": f"{amount:.2f}", "date": spent_on, "category": category}
            )
            st.markdown(f"""
            <div class="success-box">
                <h4>✅ Expense Added</h4>
                <p>{expense.amount:,.2f} on {expense.category}, {expense.date.strftime('%d %B %Y')}</p>
            </div>
            """, unsafe_allow_html=True)
        except BudgetExceededError:
            # The ledger has set the category warning; shown below.
            pass
        except (LedgerError, StorageError, ValueError) as e:
            st.error(f"Could not add the expense: {e}")

    render_warnings(ledger)


def render_expenses_page(ledger: LedgerEngine):
    """Render the expense list with filter, sort, edit and delete."""
    st.title("📋 Expenses")

    col1, col2 = st.columns(2)
    with col1:
        category_filter = st.selectbox(
            "Filter by Category",
            options=[ALL_CATEGORIES] + list(ledger.categories),
        )
    with col2:
        order = st.selectbox(
            "Sort by Amount",
            options=list(SortOrder),
            format_func=lambda x: "Highest first" if x is SortOrder.DESC else "Lowest first",
        )

    expenses = ledger.view(category_filter, order)
    if not expenses:
        st.info("No expenses recorded yet.")
    else:
        st.download_button(
            "⬇️ Download CSV",
            data=export_expenses_csv(ledger.expenses),
            file_name="expenses.csv",
            mime="text/csv",
        )

    for expense in expenses:
        with st.expander(
            f"{expense.date.isoformat()} · {expense.category} · {expense.amount:,.2f}"
        ):
            with st.form(f"edit-{expense.id}"):
                col1, col2, col3 = st.columns(3)
                with col1:
                    amount = st.number_input(
                        "Amount",
                        value=float(expense.amount),
                        min_value=0.0,
                        step=0.01,
                        format="%.2f",
                        key=f"amount-{expense.id}",
                    )
                with col2:
                    spent_on = st.date_input("Date", value=expense.date, key=f"date-{expense.id}")
                with col3:
                    categories = list(ledger.categories)
                    category = st.selectbox(
                        "Category",
                        options=categories,
                        index=categories.index(expense.category),
                        key=f"category-{expense.id}",
                    )
                save = st.form_submit_button("💾 Save changes")
                delete = st.form_submit_button("🗑️ Delete")

            try:
                if save:
                    ledger.update_expense(
                        expense.id,
                        {"amount": f"{amount:.2f}", "date": spent_on, "category": category},
                    )
                    st.rerun()
                if delete:
                    ledger.delete_expense(expense.id)
                    st.rerun()
            except BudgetExceededError as e:
                st.error(str(e))
            except ExpenseNotFoundError:
                st.warning("That expense no longer exists.")
            except (LedgerError, StorageError, ValueError) as e:
                st.error(f"Could not change the expense: {e}")


def render_categories_page(ledger: LedgerEngine):
    """Render category management and per-category budgets."""
    st.title("🏷️ Categories")

    with st.form("add_category", clear_on_submit=True):
        name = st.text_input("New category")
        if st.form_submit_button("➕ Add Category"):
            if ledger.add_category(name):
                st.success(f"Added {name.strip()}")
            else:
                st.warning("That category is empty or already exists.")

    st.markdown("---")

    budgets = ledger.category_budgets
    for category in ledger.categories:
        col1, col2, col3 = st.columns([2, 2, 1])
        with col1:
            st.markdown(f"**{category}**")
            if category not in budgets:
                st.caption(f"Using default budget of {ledger.category_ceiling(category):,.2f}")
        with col2:
            ceiling = st.number_input(
                "Budget",
                value=float(ledger.category_ceiling(category)),
                min_value=0.0,
                step=10.0,
                format="%.2f",
                key=f"budget-{category}",
                label_visibility="collapsed",
            )
            if st.button("Set budget", key=f"set-{category}"):
                try:
                    ledger.set_category_budget(category, ceiling)
                    st.rerun()
                except (LedgerError, StorageError) as e:
                    st.error(str(e))
        with col3:
            if st.button("🗑️", key=f"delete-{category}", help="Deletes its expenses too"):
                removed = ledger.delete_category(category)
                st.session_state.flash = (
                    f"Deleted {category} and {len(removed)} expense(s)"
                )
                st.rerun()

    if st.session_state.get("flash"):
        st.info(st.session_state.pop("flash"))


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()
    for name in ("ledger", "storage", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings - OK")
        else:
            error = status.get(f"{name}_error", "Invalid")
            st.error(f"❌ {name.title()} settings - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Defaults (starter income, budget and categories) and the storage "
        "location are read from environment variables or a `.env` file, "
        "for example `LEDGER_DEFAULT_INCOME` or `STORAGE_DATA_PATH`."
    )


if __name__ == "__main__":
    main()

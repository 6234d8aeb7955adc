"""Tool registry for an external agent runtime.

Every tool pairs a pydantic input model with an output type. ``call``
validates the arguments, runs the same ``FinanceService`` method the
dashboard uses and returns camelCase, JSON-ready data.
"""
import logging
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from tracker.domain import IncomeSource
from tracker.services import FinanceService
from tracker.storage import RecordValidationError

log = logging.getLogger(__name__)


class UnknownToolError(KeyError):
    pass


class ToolInputError(ValueError):
    def __init__(self, tool: str, errors: list):
        super().__init__(f"Invalid arguments for {tool}: {errors}")
        self.tool = tool
        self.errors = errors


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- inputs

class DateRangeInput(CamelModel):
    start_date: Optional[str] = Field(None, description="Start date in YYYY-MM-DD format")
    end_date: Optional[str] = Field(None, description="End date in YYYY-MM-DD format")


class ExpenseSummaryInput(DateRangeInput):
    category: Optional[str] = Field(None, description="Filter by category name")


class ExpenseFilterInput(ExpenseSummaryInput):
    min_amount: Optional[float] = Field(None, description="Minimum expense amount")
    max_amount: Optional[float] = Field(None, description="Maximum expense amount")
    search_query: Optional[str] = Field(None, description="Search in description or category")


class IncomeFilterInput(DateRangeInput):
    source: Optional[str] = Field(None, description="Filter by source: Salary, Freelance, Investments, or Other")
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


class AddExpenseInput(CamelModel):
    amount: float = Field(description="The expense amount")
    date: str = Field(description="The date of the expense in YYYY-MM-DD format")
    category: str = Field(description=(
        "The expense category (e.g., Groceries, Rent, Transportation, Utilities, "
        "Entertainment, Dining, Healthcare, Shopping, Subscriptions)"
    ))
    description: str = Field("", description="A description of what the expense was for")


class AddIncomeInput(CamelModel):
    amount: float = Field(description="The income amount")
    date: str = Field(description="The date in YYYY-MM-DD format")
    source: IncomeSource = Field(description="The income source")
    description: str = Field("", description="Description of this income")


class IdInput(CamelModel):
    id: str = Field(description="The ID of the record")


class LimitInput(CamelModel):
    limit: Optional[int] = Field(None, ge=0, description="Number of records to return, defaults to 5")


class MonthsInput(CamelModel):
    months: Optional[int] = Field(None, ge=0, description="Number of months to return, defaults to 6")


class CategoriesInput(CamelModel):
    type: Optional[Literal["expense", "income"]] = Field(None, description="Filter by category type")


# --- outputs

class ExpenseOut(CamelModel):
    id: str
    amount: float
    date: str
    category: str
    description: str
    type: Literal["expense"] = "expense"


class IncomeOut(CamelModel):
    id: str
    amount: float
    date: str
    source: IncomeSource
    description: str


class ExpenseSummaryOut(CamelModel):
    total_expenses: float
    average_expense: float
    expense_count: int
    by_category: dict[str, float]
    by_month: dict[str, float]


class IncomeSummaryOut(CamelModel):
    total_income: float
    average_income: float
    income_count: int
    by_source: dict[str, float]
    by_month: dict[str, float]


class BalanceOut(CamelModel):
    total_income: float
    total_expenses: float
    balance: float
    savings_rate: float


class CategorySpendOut(CamelModel):
    category: str
    amount: float
    percentage: float
    color: str


class TrendOut(CamelModel):
    date: str
    income: float
    expenses: float
    balance: float


class CategoryAmountOut(CamelModel):
    name: str
    amount: float


class MonthlyOut(CamelModel):
    month: str
    income: float
    expenses: float
    savings: float
    top_categories: list[CategoryAmountOut]


class CategoryOut(CamelModel):
    id: str
    name: str
    color: str
    icon: str
    type: Literal["expense", "income"]


def _plain(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _filters(inp: BaseModel) -> dict:
    return inp.model_dump(exclude_none=True)


def _expense_summary(service: FinanceService, inp: ExpenseSummaryInput) -> dict:
    s = service.get_expense_summary(_filters(inp))
    return {"total_expenses": s.total, "average_expense": s.average, "expense_count": s.count,
            "by_category": s.by_category, "by_month": s.by_month}


def _income_summary(service: FinanceService, inp: IncomeFilterInput) -> dict:
    s = service.get_income_summary(_filters(inp))
    return {"total_income": s.total, "average_income": s.average, "income_count": s.count,
            "by_source": s.by_category, "by_month": s.by_month}


def _balance(service: FinanceService, inp: DateRangeInput) -> Any:
    # the same date range applies to both sides
    return service.get_balance_summary(_filters(inp), _filters(inp))


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_model: type
    output_type: Any
    run: Callable[[FinanceService, Any], Any]

    @property
    def output(self) -> TypeAdapter:
        return TypeAdapter(self.output_type)


TOOLS: tuple[Tool, ...] = (
    Tool("getExpenses",
         "Get a list of expenses with optional filtering by date range, category, amount, or search query",
         ExpenseFilterInput, list[ExpenseOut],
         lambda svc, inp: svc.get_expenses(_filters(inp))),
    Tool("addExpense", "Add a new expense with amount, date, category, and description",
         AddExpenseInput, ExpenseOut,
         lambda svc, inp: svc.add_expense(inp.amount, inp.date, inp.category, inp.description)),
    Tool("deleteExpense", "Delete an expense by its ID",
         IdInput, bool,
         lambda svc, inp: svc.delete_expense(inp.id)),
    Tool("getExpenseSummary",
         "Get a summary of expenses including total, average, count, and breakdown by category and month",
         ExpenseSummaryInput, ExpenseSummaryOut, _expense_summary),
    Tool("getRecentExpenses", "Get the most recent expenses",
         LimitInput, list[ExpenseOut],
         lambda svc, inp: svc.get_recent_expenses(inp.limit)),
    Tool("getIncome", "Get a list of income entries with optional filtering",
         IncomeFilterInput, list[IncomeOut],
         lambda svc, inp: svc.get_income(_filters(inp))),
    Tool("addIncome", "Add a new income entry",
         AddIncomeInput, IncomeOut,
         lambda svc, inp: svc.add_income(inp.amount, inp.date, inp.source, inp.description)),
    Tool("getIncomeSummary", "Get a summary of income including total, average, count, and breakdown by source and month",
         IncomeFilterInput, IncomeSummaryOut, _income_summary),
    Tool("getBalanceSummary", "Get a financial summary with total income, expenses, balance, and savings rate",
         DateRangeInput, BalanceOut, _balance),
    Tool("getSpendingByCategory", "Get spending breakdown by category with amounts and percentages",
         DateRangeInput, list[CategorySpendOut],
         lambda svc, inp: svc.get_spending_by_category(_filters(inp))),
    Tool("getSpendingTrends", "Get spending trends over time showing daily income, expenses, and balance",
         DateRangeInput, list[TrendOut],
         lambda svc, inp: svc.get_spending_trends(_filters(inp))),
    Tool("getMonthlyBreakdown", "Get income, expenses, savings and top categories for recent months",
         MonthsInput, list[MonthlyOut],
         lambda svc, inp: svc.get_monthly_breakdown(inp.months)),
    Tool("getCategories", "Get available expense and income categories",
         CategoriesInput, list[CategoryOut],
         lambda svc, inp: svc.get_categories(inp.type)),
)


class ToolRegistry:
    def __init__(self, service: FinanceService, tools: tuple[Tool, ...] = TOOLS):
        self.service = service
        self._tools = {t.name: t for t in tools}

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        if name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name]

    def schemas(self) -> list[dict]:
        return [
            {
                "name": t.name,
                "description": t.description,
                "inputSchema": t.input_model.model_json_schema(by_alias=True),
                "outputSchema": t.output.json_schema(by_alias=True),
            }
            for t in self._tools.values()
        ]

    def call(self, name: str, arguments: Optional[dict] = None) -> Any:
        tool = self.get(name)
        try:
            inp = tool.input_model.model_validate(arguments or {})
        except ValidationError as e:
            raise ToolInputError(name, e.errors(include_url=False)) from e
        log.debug("Calling tool %s with %s", name, arguments)
        try:
            raw = tool.run(self.service, inp)
        except RecordValidationError as e:
            raise ToolInputError(name, [e.error]) from e
        adapter = tool.output
        return adapter.dump_python(adapter.validate_python(_plain(raw)), by_alias=True, mode="json")

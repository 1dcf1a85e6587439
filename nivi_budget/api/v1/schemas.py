"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the web client uses"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Finance document, the shape stored per user


class ExpenseSchema(CamelModel):
    id: str
    amount: float
    description: str = ""
    date: datetime
    subcategory_id: str


class SubCategorySchema(CamelModel):
    id: str
    name: str
    allocated_amount: float = 0.0
    allocated_percentage: float
    spent_amount: float = 0.0
    balance: float = 0.0
    expenses: List[ExpenseSchema] = []


class MainCategorySchema(CamelModel):
    id: str
    name: str
    percentage: float
    total_allocated: float = 0.0
    total_spent: float = 0.0
    total_balance: float = 0.0
    subcategories: List[SubCategorySchema] = []


class IncomeTransactionSchema(CamelModel):
    id: str
    amount: float
    description: str = ""
    source: str = ""
    date: datetime


class EMISchema(CamelModel):
    id: str
    name: str
    amount: float
    tenure_left: int
    total_tenure: int
    paid_count: int = 0
    is_active: bool = True


class DebtSchema(CamelModel):
    id: str
    name: str
    pending_amount: float
    monthly_payment: float
    total_months: int
    paid_amount: float = 0.0
    is_active: bool = True
    reminder_date: Optional[datetime] = None


class FinanceDocumentSchema(CamelModel):
    """Whole finance state for GET/PUT /v1/finance and every mutation response"""

    income: float = 0.0
    income_transactions: List[IncomeTransactionSchema] = []
    categories: List[MainCategorySchema] = []
    emis: List[EMISchema] = []
    debts: List[DebtSchema] = []
    transactions: List[ExpenseSchema] = []


# Mutation requests


class IncomeRequest(CamelModel):
    """Request body for POST /v1/finance/income"""

    amount: float = Field(..., gt=0, description="Income amount")
    description: str = ""
    source: str = ""
    date: Optional[datetime] = None


class IncomeUpdateRequest(CamelModel):
    """Request body for PATCH /v1/finance/income/{transaction_id}"""

    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    source: Optional[str] = None
    date: Optional[datetime] = None


class TransferRequest(CamelModel):
    """Request body for POST /v1/finance/transfers"""

    from_category_id: str = Field(..., min_length=1)
    to_category_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class ExpenseRequest(CamelModel):
    """Request body for POST /v1/finance/subcategories/{subcategory_id}/expenses"""

    amount: float = Field(..., gt=0, description="Amount spent")
    description: str = ""
    date: Optional[datetime] = None


class ExpenseUpdateRequest(CamelModel):
    """Request body for PATCH /v1/finance/transactions/{transaction_id}"""

    amount: float = Field(..., gt=0)
    description: Optional[str] = None


class SubcategoryCreateRequest(CamelModel):
    """Request body for POST /v1/finance/categories/{category_id}/subcategories"""

    name: str = Field(..., min_length=1)
    percentage: float = Field(..., gt=0, le=100, description="Share of the category")


class SubcategoryRenameRequest(CamelModel):
    name: str = Field(..., min_length=1)


class AllocationRequest(CamelModel):
    """Request body for PUT .../subcategories/{subcategory_id}/allocation"""

    amount: float = Field(..., ge=0, description="New allocated amount")


class EMIRequest(CamelModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, description="Monthly installment")
    tenure: int = Field(..., gt=0, description="Installments left")


class DebtRequest(CamelModel):
    name: str = Field(..., min_length=1)
    pending_amount: float = Field(..., gt=0)
    monthly_payment: float = Field(..., gt=0)
    reminder_date: Optional[datetime] = None


# Read models


class EMIStatus(EMISchema):
    progress: float


class DebtStatus(DebtSchema):
    months_remaining: int


class ObligationsResponse(CamelModel):
    """Response for GET /v1/finance/obligations"""

    emis: List[EMIStatus]
    debts: List[DebtStatus]
    due_reminders: List[DebtSchema]


class HistoryItem(CamelModel):
    """Single row in the transaction history"""

    id: str
    type: str
    amount: float
    description: str
    date: datetime
    subcategory_name: str
    category_name: str
    category_id: str


class HistoryResponse(CamelModel):
    """Response for GET /v1/finance/history"""

    entries: List[HistoryItem]
    net_total: float

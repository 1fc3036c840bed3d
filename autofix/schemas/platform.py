from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PlanDuration = Literal["Monthly", "Yearly", "3-Year"]
VerificationStatus = Literal["Pending", "Approved", "Rejected"]
TicketStatus = Literal["Open", "Pending Response", "In Progress", "Resolved"]


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    price: str
    duration: PlanDuration
    description: str = ""
    features: List[str] = Field(default_factory=list)
    popular: bool = False
    status: Literal["Active", "Inactive"] = "Active"


class PlatformInvoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    workshop_id: str
    number: str
    date: str
    plan_name: str
    duration: str
    amount: float
    status: Literal["Paid", "Outstanding"] = "Paid"


class PaymentVerification(BaseModel):
    id: str
    workshop_id: str
    workshop_name: str = ""
    plan_id: str
    amount: float
    reference: str = ""
    pop_image: str = ""
    status: VerificationStatus = "Pending"
    timestamp: str
    notes: Optional[str] = None


class TicketMessage(BaseModel):
    id: str
    sender_name: str
    role: Literal["Owner", "Admin"]
    content: str
    timestamp: str


class SupportTicket(BaseModel):
    id: str
    workshop_id: str
    workshop_name: str = ""
    user_name: str = ""
    subject: str
    category: str = "General"
    priority: Literal["Low", "Medium", "High", "Critical"] = "Medium"
    status: TicketStatus = "Open"
    created_at: str
    updated_at: str
    description: str = ""
    messages: List[TicketMessage] = Field(default_factory=list)


class AdminBankDetails(BaseModel):
    bank_name: str = "FNB Business"
    account_name: str = "AutoFix Pro Solutions"
    account_number: str = "62012345678"
    branch_code: str = "250655"
    payment_instructions: str = (
        "Please use your Workshop ID as the payment reference. "
        "Upload your POP below for immediate verification."
    )


class AdminConfig(BaseModel):
    show_pricing_on_landing: bool = True
    show_pricing_in_console: bool = True


class BillingAlert(BaseModel):
    type: Literal["info", "warning", "critical"]
    message: str
    status: str
    is_locked: bool

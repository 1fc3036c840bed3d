from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkshopRecord(BaseModel):
    """Base for per-tenant records; unknown client fields are kept as-is."""

    model_config = ConfigDict(extra="allow")

    id: str


class LineItem(BaseModel):
    id: str
    type: Literal["Part", "Labor", "Repair"]
    description: str
    sub_text: Optional[str] = None
    qty: float = 1
    unit_price: float = 0
    discount: float = 0
    tax: float = 0


class Quote(WorkshopRecord):
    number: str
    date: str
    customer_name: str
    customer_phone: str = ""
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    vehicle: str = ""
    reg_no: str = ""
    vin: Optional[str] = None
    odo: Optional[str] = None
    amount: float = 0
    items: Optional[List[LineItem]] = None
    notes: Optional[str] = None
    status: Literal["Draft", "Accepted", "Rejected"] = "Draft"


class JobTask(BaseModel):
    id: str
    description: str
    completed: bool = False


class JobCard(WorkshopRecord):
    job_id: str
    vehicle_reg: str
    vehicle_name: str
    vehicle_vin: Optional[str] = None
    vehicle_odometer: Optional[str] = None
    fuel_level: Optional[str] = None
    fuel_type: Optional[Literal["Petrol", "Diesel", "Hybrid", "Electric"]] = None
    customer_initials: str = ""
    customer_name: str
    customer_phone: str = ""
    customer_email: Optional[str] = None
    technician_name: str = ""
    technician_avatar: str = ""
    status: Literal["In Progress", "Waiting Parts", "Completed", "Booked"] = "Booked"
    progress: int = 0
    status_text: str = ""
    status_color: Literal["blue", "amber", "emerald", "slate"] = "slate"
    priority: Optional[str] = None
    job_type: Optional[str] = None
    est_completion: Optional[str] = None
    customer_request: Optional[str] = None
    tasks: Optional[List[JobTask]] = None
    images: Optional[List[str]] = None


class Technician(WorkshopRecord):
    name: str
    role: Optional[str] = None


class InvoiceLine(BaseModel):
    id: str
    description: str
    type: str
    qty: float
    unit_price: float


class Invoice(WorkshopRecord):
    number: str
    date: str
    customer_name: str
    vehicle_reg: str = ""
    vehicle_make: str = ""
    amount: float = 0
    balance: float = 0
    paid_amount: float = 0
    status: Literal["Paid", "Partial", "Overdue", "Sent", "Outstanding", "Pending Verification"] = "Sent"
    items: Optional[List[InvoiceLine]] = None


class InventoryTransaction(BaseModel):
    id: str
    type: Literal["Stock In", "Issue", "Adjustment"]
    qty: float
    user_name: str
    destination: str
    timestamp: str


class InventoryItem(WorkshopRecord):
    part_number: str
    name: str
    category: str
    supplier: str = ""
    cost_price: float = 0
    selling_price: float = 0
    stock: float = 0
    low_stock_alert: float = 0
    bin_location: Optional[str] = None
    images: Optional[List[str]] = None
    transactions: List[InventoryTransaction] = Field(default_factory=list)


class Customer(WorkshopRecord):
    first_name: str
    last_name: str
    company_name: Optional[str] = None
    is_business: bool = False
    email: str = ""
    phone: str = ""
    address: Optional[str] = None
    suburb: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    vat_number: Optional[str] = None
    vehicles: Optional[List[str]] = None
    balance: float = 0
    status: Literal["Active", "Inactive"] = "Active"

    @property
    def display_name(self) -> str:
        if self.is_business and self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name}".strip()


ActivityType = Literal["Quote", "Job", "Invoice", "Stock", "Customer", "Support", "Payment"]


class Activity(WorkshopRecord):
    type: ActivityType
    title: str
    description: str
    timestamp: str
    icon: str = ""
    color: str = ""
    link: Optional[str] = None

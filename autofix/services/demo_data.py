"""Realistic demo dataset written into a new workshop on its first login."""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from autofix.schemas.platform import SubscriptionPlan, SupportTicket, TicketMessage
from autofix.schemas.user import User
from autofix.schemas.workshop import (
    Activity,
    Customer,
    InventoryItem,
    Invoice,
    JobCard,
    JobTask,
    Quote,
    Technician,
)
from autofix.services.repositories import utc_now

DEFAULT_PLANS = [
    SubscriptionPlan(
        id="plan-monthly",
        name="Monthly Plan",
        price="450",
        duration="Monthly",
        description="Perfect for regular cash-flow management.",
        features=["Full Access", "Unlimited Jobs", "Unlimited Invoices"],
        popular=False,
    ),
    SubscriptionPlan(
        id="plan-yearly",
        name="Annual Precision",
        price="4500",
        duration="Yearly",
        description="Save 15% with annual billing.",
        features=["Full Access", "Priority Support", "Cloud Backup"],
        popular=True,
    ),
    SubscriptionPlan(
        id="plan-3year",
        name="Enterprise Legend",
        price="12000",
        duration="3-Year",
        description="Lock in price for 3 years.",
        features=["Full Access", "Dedicated Manager", "Beta Access"],
        popular=False,
    ),
]

DEMO_PASSWORD = "demo"

DEMO_ACCOUNTS = [
    {
        "id": "demo-owner-1",
        "name": "John Owner",
        "email": "owner@demo.com",
        "role": "Owner",
        "avatar": "https://ui-avatars.com/api/?name=John+Owner&background=0d51b0&color=fff",
        "workshop_name": "Supreme Auto Works",
        "workshop_phone": "021 555 0101",
        "subscription_plan_id": "plan-monthly",
    },
    {
        "id": "demo-advisor-1",
        "name": "Sarah Advisor",
        "email": "sarah@autocare.com",
        "role": "Service Advisor",
        "avatar": "https://ui-avatars.com/api/?name=Sarah+Advisor&background=6366f1&color=fff",
        "workshop_name": "City Center Motors",
        "workshop_phone": "031 222 9988",
        "subscription_plan_id": "plan-yearly",
    },
]

_CATEGORIES = ["Engine", "Filters", "Braking", "Electrical", "Fluids", "Suspension"]
_SUPPLIERS = ["GUD Filters", "Goldwagen", "Masterparts", "AutoZone", "TotalEnergies"]


@dataclass
class DemoWorkshop:
    customers: List[Customer] = field(default_factory=list)
    inventory: List[InventoryItem] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    job_cards: List[JobCard] = field(default_factory=list)
    technicians: List[Technician] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)


def _customers() -> List[Customer]:
    rows = [
        ("c1", "John", "Smit", "Cape Logistics", "john@capelog.co.za", "021 555 1234",
         "12 Industrial Way, Paarden Eiland", 0, ["Isuzu NPR 400", "Toyota Hilux"]),
        ("c2", "Sarah", "Williams", None, "sarah.w@gmail.com", "082 991 0022",
         "42 Oak Street, Constantia", 8500, ["BMW X5 xDrive"]),
        ("c3", "Michael", "Chen", "Mobi-Rent South", "m.chen@mobirent.com", "011 442 8899",
         "Unit 4, Sandton Square", 0, ["VW Polo Vivo", "VW Golf 8 GTI"]),
        ("c4", "David", "Muller", None, "david.m@outlook.com", "071 555 6677",
         "18 Beach Rd, Sea Point", 0, ["Mercedes C200"]),
        ("c5", "Nomvula", "Khumalo", "Bright Spark Electrical", "info@brightspark.co.za", "031 222 3344",
         "88 West St, Durban", 1250, ["Ford Ranger"]),
        ("c6", "Pieter", "Botha", None, "pieterb@mweb.co.za", "083 445 1122",
         "10 Mountain View, Stellenbosch", 0, ["Toyota Land Cruiser 300"]),
        ("c7", "Fleet", "Manager", "DHL Express Paarl", "paarl.fleet@dhl.com", "021 887 9000",
         "Main Rd, Paarl", 45000, ["Mercedes Sprinter 515", "Mercedes Sprinter 313"]),
    ]
    return [
        Customer(
            id=cid,
            first_name=first,
            last_name=last,
            company_name=company,
            is_business=company is not None,
            email=email,
            phone=phone,
            address=address,
            balance=balance,
            vehicles=vehicles,
        )
        for cid, first, last, company, email, phone, address, balance, vehicles in rows
    ]


def _inventory(rng: random.Random) -> List[InventoryItem]:
    items: List[InventoryItem] = []
    for i in range(1, 56):
        category = _CATEGORIES[i % len(_CATEGORIES)]
        supplier = _SUPPLIERS[i % len(_SUPPLIERS)]
        cost = rng.randint(100, 2099)
        items.append(
            InventoryItem(
                id=f"inv-{i}",
                part_number=f"{category[:3].upper()}-{1000 + i}",
                name=f"{category} Component Part #{i} ({supplier})",
                category=category,
                supplier=supplier,
                cost_price=cost,
                selling_price=round(cost * 1.6, 2),
                stock=rng.randint(1, 20),
                low_stock_alert=5,
                bin_location=f"Shelf-{chr(65 + i % 6)}{i % 10}",
            )
        )

    items[0] = InventoryItem(
        id="oil-1", part_number="TOT-5W40-20L", name="Total Quartz 9000 5W40 (20L)", category="Fluids",
        supplier="TotalEnergies", cost_price=1800, selling_price=3200, stock=4, low_stock_alert=5,
        bin_location="Bulk-01",
    )
    items[1] = InventoryItem(
        id="filt-1", part_number="GUD-Z122", name="Oil Filter Z122 (GUD)", category="Filters",
        supplier="GUD Filters", cost_price=85, selling_price=145, stock=2, low_stock_alert=10,
        bin_location="A-12",
    )
    items[2] = InventoryItem(
        id="brake-1", part_number="ATE-6027", name="Front Brake Pads (ATE)", category="Braking",
        supplier="Masterparts", cost_price=650, selling_price=1150, stock=8, low_stock_alert=4,
        bin_location="B-04",
    )
    return items


def _quotes(customers: List[Customer], today: date, rng: random.Random) -> List[Quote]:
    quotes: List[Quote] = []
    for i in range(1, 21):
        customer = customers[i % len(customers)]
        if i % 3 == 0:
            status = "Accepted"
        elif i % 5 == 0:
            status = "Rejected"
        else:
            status = "Draft"
        quotes.append(
            Quote(
                id=f"q-seed-{i}",
                number=f"Q-24-{900 + i}",
                date=(today - timedelta(days=i)).isoformat(),
                customer_name=customer.display_name,
                customer_phone=customer.phone,
                vehicle=(customer.vehicles or [""])[0],
                reg_no=f"CA {100 + i}-{999 - i}",
                amount=rng.randint(2000, 16999),
                status=status,
            )
        )
    return quotes


def _invoices(today: date) -> List[Invoice]:
    def days_ago(n: int) -> str:
        return (today - timedelta(days=n)).isoformat()

    return [
        Invoice(id="inv-s1", number="INV-24-001", date=days_ago(2), customer_name="Cape Logistics",
                vehicle_reg="CA 882-901", vehicle_make="Isuzu NPR", amount=12500, balance=0,
                paid_amount=12500, status="Paid"),
        Invoice(id="inv-s2", number="INV-24-002", date=days_ago(5), customer_name="Sarah Williams",
                vehicle_reg="CY 123-999", vehicle_make="BMW X5", amount=8500, balance=8500,
                paid_amount=0, status="Overdue"),
        Invoice(id="inv-s3", number="INV-24-003", date=days_ago(8), customer_name="Bright Spark Electrical",
                vehicle_reg="ND 442-110", vehicle_make="Ford Ranger", amount=4500, balance=1250,
                paid_amount=3250, status="Partial"),
        Invoice(id="inv-s4", number="INV-24-004", date=days_ago(12), customer_name="DHL Express Paarl",
                vehicle_reg="CJ 991-001", vehicle_make="Mercedes Sprinter", amount=45000, balance=45000,
                paid_amount=0, status="Outstanding"),
    ]


def _tasks(*entries: tuple) -> List[JobTask]:
    return [
        JobTask(id=f"t{index}", description=description, completed=completed)
        for index, (description, completed) in enumerate(entries, start=1)
    ]


def _job_cards(today: date) -> List[JobCard]:
    return [
        JobCard(
            id="job-s1", job_id="JC-24-401", vehicle_reg="CA 882-901", vehicle_name="Toyota Hilux 2.8 GD-6",
            customer_name="John Smit", customer_initials="JS", customer_phone="021 555 1234",
            technician_name="Mike Tech", status="In Progress", progress=65, status_text="4/6 Tasks",
            status_color="blue", priority="High", job_type="Major Service",
            customer_request="Oil change, check rear brakes, and inspect air conditioner noise.",
            est_completion=(today + timedelta(days=1)).isoformat(),
            tasks=_tasks(
                ("Drain engine oil and replace filter", True),
                ("Inspect brake pads and discs", True),
                ("Replace cabin and air filters", True),
                ("Diagnostic scan for AC fault codes", True),
                ("Flush braking system", False),
                ("Wheel alignment and balancing", False),
            ),
        ),
        JobCard(
            id="job-s2", job_id="JC-24-402", vehicle_reg="CY 123-999", vehicle_name="BMW X5 xDrive30d",
            customer_name="Sarah Williams", customer_initials="SW", customer_phone="082 991 0022",
            technician_name="Sarah J.", status="Waiting Parts", progress=30, status_text="1/4 Tasks",
            status_color="amber", priority="Urgent", job_type="Repair",
            customer_request="Air suspension failure warning on dashboard. Vehicle sagging at rear.",
            est_completion=(today + timedelta(days=2)).isoformat(),
            tasks=_tasks(
                ("Vehicle health check & diagnostics", True),
                ("Remove rear air bags and inspect for leaks", False),
                ("Replace air suspension compressor relay", False),
                ("Calibration of ride height sensors", False),
            ),
        ),
        JobCard(
            id="job-s3", job_id="JC-24-403", vehicle_reg="ND 442-110", vehicle_name="Ford Ranger 2.2 XL",
            customer_name="Nomvula Khumalo", customer_initials="NK", customer_phone="031 222 3344",
            technician_name="David Muller", status="Completed", progress=100, status_text="3/3 Tasks",
            status_color="emerald", priority="Normal", job_type="Inspection",
            customer_request="Pre-holiday inspection and safety check.",
            est_completion=(today - timedelta(days=1)).isoformat(),
            tasks=_tasks(
                ("Check all fluid levels", True),
                ("Brake performance test", True),
                ("Tyre pressure and depth check", True),
            ),
        ),
    ]


def build_demo_workshop(today: Optional[date] = None, rng: Optional[random.Random] = None) -> DemoWorkshop:
    now = utc_now()
    today = today or now.date()
    rng = rng or random.Random()
    customers = _customers()
    return DemoWorkshop(
        customers=customers,
        inventory=_inventory(rng),
        quotes=_quotes(customers, today, rng),
        invoices=_invoices(today),
        job_cards=_job_cards(today),
        technicians=[
            Technician(id="tech-1", name="Mike Tech", role="Senior Mechanic"),
            Technician(id="tech-2", name="Sarah J.", role="Electrical Specialist"),
            Technician(id="tech-3", name="David Muller", role="Diagnostic Tech"),
        ],
        activities=[
            Activity(
                id="a1",
                type="Support",
                title="Welcome to AutoFix Pro!",
                description="Your workshop environment is now active.",
                timestamp=now.isoformat(),
                icon="celebration",
                color="bg-emerald-50 text-emerald-600",
            )
        ],
    )


def build_demo_tickets(user: User, now: Optional[datetime] = None) -> List[SupportTicket]:
    now = now or utc_now()
    two_days_ago = (now - timedelta(days=2)).isoformat()
    five_hours_ago = (now - timedelta(hours=5)).isoformat()
    billing_question = (
        "Hi Admin, I noticed the Pro plan is R450. Is there a discount for multiple branches?"
    )
    feature_request = "Would love to see an option to send quotes directly via WhatsApp API."
    return [
        SupportTicket(
            id="TR-1001",
            workshop_id=user.id,
            workshop_name=user.workshop_name,
            user_name=user.name,
            subject="Billing Question regarding Pro Plan",
            category="Billing",
            priority="Medium",
            status="Pending Response",
            created_at=two_days_ago,
            updated_at=now.isoformat(),
            description=billing_question,
            messages=[
                TicketMessage(id="m1", sender_name=user.name, role="Owner", content=billing_question,
                              timestamp=two_days_ago),
                TicketMessage(
                    id="m2",
                    sender_name="Platform Support",
                    role="Admin",
                    content=(
                        "Hello! Yes, for 5+ branches we offer a 20% discount on the total "
                        "subscription. Would you like a custom quote?"
                    ),
                    timestamp=now.isoformat(),
                ),
            ],
        ),
        SupportTicket(
            id="TR-1002",
            workshop_id=user.id,
            workshop_name=user.workshop_name,
            user_name=user.name,
            subject="Feature Request: WhatsApp Invoicing",
            category="Feature",
            priority="Low",
            status="Open",
            created_at=five_hours_ago,
            updated_at=five_hours_ago,
            description=feature_request,
            messages=[
                TicketMessage(id="m1", sender_name=user.name, role="Owner", content=feature_request,
                              timestamp=five_hours_ago),
            ],
        ),
    ]

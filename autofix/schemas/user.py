from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

UserRole = Literal["Owner", "Staff", "Service Advisor", "Technician"]

BILLABLE_ROLES = {"Owner", "Service Advisor"}


class User(BaseModel):
    """Authenticated workshop user as seen by the data layer."""

    model_config = ConfigDict(extra="ignore")

    id: str
    owner_id: Optional[str] = None
    name: str = ""
    email: str = ""
    role: UserRole = "Owner"
    avatar: str = ""
    workshop_name: str = ""
    workshop_logo: str = ""
    workshop_email: Optional[str] = None
    workshop_phone: Optional[str] = None
    workshop_address: Optional[str] = None
    workshop_vat: Optional[str] = None
    trial_start_date: Optional[str] = None
    subscription_plan_id: Optional[str] = None
    workshop_bank_name: Optional[str] = None
    workshop_account_name: Optional[str] = None
    workshop_account_number: Optional[str] = None
    workshop_branch_code: Optional[str] = None
    workshop_brand_color: Optional[str] = None
    theme_preference: Optional[Literal["light", "dark"]] = None


class StoredUser(User):
    password_hash: str = ""

    def to_user(self) -> User:
        return User(**self.model_dump(exclude={"password_hash"}))

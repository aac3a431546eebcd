from datetime import datetime
from typing import Optional
from pydantic import BaseModel, model_validator

class SubscriptionCreate(BaseModel):
    user_id: str
    diary_number: str
    court: str
    case_type: str = ""
    city: str = ""
    district: str = ""
    email: Optional[str] = None
    country_code: Optional[str] = None
    mobile_number: Optional[str] = None

    @model_validator(mode="after")
    def needs_contact(self):
        if not (self.email or self.mobile_number):
            raise ValueError("an email or a mobile number is required")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "7d0f3c1e-52a4-4b8e-9f0a-3f1c2d4e5b6a",
                "diary_number": "1234/2025",
                "court": "Delhi High Court",
                "case_type": "W.P.(C)",
                "city": "New Delhi",
                "country_code": "+91",
                "mobile_number": "9876543210",
            }
        }

class Subscription(SubscriptionCreate):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Notification(BaseModel):
    id: str
    user_id: str
    case_id: Optional[str] = None
    diary_number: str
    court: str
    method: str
    contact: str
    message: str
    order_key: str
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

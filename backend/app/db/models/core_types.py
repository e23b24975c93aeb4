import enum

class CompanyStatus(str, enum.Enum):
    pending = "PENDING"
    active = "ACTIVE"
    inactive = "INACTIVE"

class OrderStatus(str, enum.Enum):
    pending = "PENDING"
    sent = "SENT"
    confirmed = "CONFIRMED"
    rejected = "REJECTED"
    completed = "COMPLETED"
    cancelled = "CANCELLED"

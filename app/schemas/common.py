from enum import Enum


class ProductType(str, Enum):
    aca = "aca"
    limited_medical = "limited_medical"
    life_insurance = "life_insurance"


class SyncStatus(str, Enum):
    pending = "pending"
    analyzing = "analyzing"
    pending_approval = "pending_approval"
    applied = "applied"
    rejected = "rejected"


class Severity(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"


class ThresholdType(str, Enum):
    boolean = "boolean"
    percentage = "percentage"


class ItemSource(str, Enum):
    custom = "custom"
    script_sync = "script_sync"

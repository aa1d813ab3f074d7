from enum import StrEnum


class ProductStatus(StrEnum):
    DRAFT = 'DRAFT'
    ACTIVE = 'ACTIVE'
    SOLD_OUT = 'SOLD_OUT'
    EXPIRED = 'EXPIRED'
    DEACTIVATED = 'DEACTIVATED'

# app/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    STOCK_MOVEMENT_CREATED = "STOCK_MOVEMENT_CREATED"

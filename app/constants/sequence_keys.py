# app/constants/sequence_keys.py

from enum import Enum


class SequenceKey(str, Enum):
    STOCK_MOVEMENT = "SM"
    LOT = "LOT"

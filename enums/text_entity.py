from enum import Enum


class TextEntity(Enum):
    EMAIL = "email"
    COMMON = "common"

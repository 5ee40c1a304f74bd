from enum import Enum


class Operation(str, Enum):
    """Kind of mutation observed on the target record"""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

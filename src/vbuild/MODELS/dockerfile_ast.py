"""
Models for parsed Dockerfile instructions.
"""
import shlex
from typing import List
from pydantic import BaseModel


class Instruction(BaseModel):
    """
    A single Dockerfile instruction with its continuation lines already joined.
    """
    instruction: str
    arguments: List[str]
    raw: str
    line: int = 0

    def words(self) -> List[str]:
        """
        Splits shell-form arguments into words; exec-form arguments are returned as-is.
        """
        if len(self.arguments) != 1:
            return list(self.arguments)
        try:
            return shlex.split(self.arguments[0])
        except ValueError:
            # Unbalanced quotes
            return self.arguments[0].split()

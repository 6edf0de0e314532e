"""Arithmetic challenge generation."""

import random
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Challenge:
    left: int
    operator: str
    right: int

    @property
    def expression(self) -> str:
        return f"{self.left}{self.operator}{self.right}=?"

    @property
    def answer(self) -> str:
        if self.operator == "-":
            return str(self.left - self.right)
        return str(self.left + self.right)


def generate_challenge(
    minimum: int = 1,
    maximum: int = 10,
    operators: str = "+",
    rng: Optional[random.Random] = None,
) -> Challenge:
    """Draw two operands from [minimum, maximum] and one operator.

    For subtraction the larger operand goes first, so answers are never negative.
    """
    rng = rng or random.SystemRandom()
    left = rng.randint(minimum, maximum)
    right = rng.randint(minimum, maximum)
    operator = rng.choice(operators)
    if operator == "-" and left < right:
        left, right = right, left
    return Challenge(left=left, operator=operator, right=right)

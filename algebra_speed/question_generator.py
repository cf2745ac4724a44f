"""Randomised "evaluate for x" algebra questions.

Four expression templates, one drawn uniformly per question. Every template
is built so the answer is an exact integer: parameters are integers, and the
quotient template solves for its constant term so the division has no
remainder. Non-zero parameters are drawn by rejection (redraw until non-zero)
so they stay uniform over the non-zero range.

The generator has no pygame or clock dependency and is deterministic for a
given seed.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum


class Template(str, Enum):
    SQUARED_BINOMIAL = "squared_binomial"  # a(x ± b)^2
    QUADRATIC = "quadratic"  # ax^2 ± bx [± c]
    LINEAR_QUOTIENT = "linear_quotient"  # (ax ± b) / c
    BINOMIAL_PRODUCT = "binomial_product"  # (x ± a)(x ± b)


@dataclass(frozen=True, slots=True)
class Question:
    text: str
    x_value: int
    answer: int
    template: Template

    @property
    def display_text(self) -> str:
        return self.text.replace("^2", "²")

    @property
    def review_text(self) -> str:
        return f"For x={self.x_value}, {self.display_text}"


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int | None) -> None:
        self._rng = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def randint_nonzero(self, a: int, b: int) -> int:
        if a == 0 and b == 0:
            raise ValueError("range [0, 0] has no non-zero value")
        value = 0
        while value == 0:
            value = self._rng.randint(a, b)
        return value

    def choice(self, seq: list[Template]) -> Template:
        return self._rng.choice(seq)


def signed_term(value: int, suffix: str = "") -> str:
    """Render ``value`` as an operator and magnitude, e.g. ``-3`` -> ``"- 3"``."""

    sign = "+" if value > 0 else "-"
    return f"{sign} {abs(value)}{suffix}"


class QuestionGenerator:
    """Generates a reproducible sequence of algebra questions."""

    def __init__(self, *, seed: int | None = None) -> None:
        self._rng = SeededRng(seed)
        self._templates = list(Template)

    def generate(self, count: int) -> list[Question]:
        if count < 0:
            raise ValueError("count must be >= 0")
        return [self.next_question() for _ in range(count)]

    def next_question(self) -> Question:
        template = self._rng.choice(self._templates)
        if template is Template.SQUARED_BINOMIAL:
            return self._squared_binomial()
        if template is Template.QUADRATIC:
            return self._quadratic()
        if template is Template.LINEAR_QUOTIENT:
            return self._linear_quotient()
        return self._binomial_product()

    def _squared_binomial(self) -> Question:
        a = self._rng.randint(2, 5)
        b = self._rng.randint_nonzero(-5, 5)
        x = self._rng.randint_nonzero(-4, 4)
        return Question(
            text=f"{a}(x {signed_term(b)})^2",
            x_value=x,
            answer=a * (x + b) ** 2,
            template=Template.SQUARED_BINOMIAL,
        )

    def _quadratic(self) -> Question:
        a = self._rng.randint(2, 5)
        b = self._rng.randint_nonzero(-7, 7)
        c = self._rng.randint(-10, 10)
        x = self._rng.randint_nonzero(-3, 3)
        text = f"{a}x^2 {signed_term(b, 'x')}"
        # A zero constant is left off the text but still part of the sum.
        if c != 0:
            text += f" {signed_term(c)}"
        return Question(
            text=text,
            x_value=x,
            answer=a * x**2 + b * x + c,
            template=Template.QUADRATIC,
        )

    def _linear_quotient(self) -> Question:
        a = self._rng.randint(2, 5)
        x = self._rng.randint(1, 5)
        c = self._rng.randint(2, 5)
        # Solve for b from the quotient so (a*x + b) is a multiple of c.
        while True:
            result = self._rng.randint(2, 10)
            b = result * c - a * x
            if b != 0:
                break
        return Question(
            text=f"({a}x {signed_term(b)}) / {c}",
            x_value=x,
            answer=result,
            template=Template.LINEAR_QUOTIENT,
        )

    def _binomial_product(self) -> Question:
        a = self._rng.randint_nonzero(-6, 6)
        b = self._rng.randint_nonzero(-6, 6)
        x = self._rng.randint_nonzero(-4, 4)
        return Question(
            text=f"(x {signed_term(a)})(x {signed_term(b)})",
            x_value=x,
            answer=(x + a) * (x + b),
            template=Template.BINOMIAL_PRODUCT,
        )

"""Formula evaluation for computed effect values.

Formulas are evaluated by a small recursive-descent parser instead of
being executed as code. The grammar is fixed:

    expression := term (('+' | '-') term)*
    term       := unary (('*' | '/') unary)*
    unary      := ('+' | '-') unary | primary
    primary    := NUMBER | VARIABLE | FUNCTION '(' arguments ')' | '(' expression ')'
    arguments  := expression (',' expression)*

Functions: min, max, floor, ceil, round. Variables are ``@`` tokens and
must be declared on the formula; their values are resolved from a
``FormulaContext`` before parsing.

Evaluation never raises in normal operation: unknown variables resolve
to 0 and malformed expressions yield 0, each with a logged warning.
Passing ``strict=True`` turns both into ``FormulaError``.

Example:
    >>> formula = Formula(expression="max(1, @abilities.CHA.modifier)",
    ...                   variables=["@abilities.CHA.modifier"])
    >>> evaluate_formula(formula, context)
    3
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, NoReturn

from dnd_rules.core.exceptions import FormulaError
from dnd_rules.core.logging import get_logger
from dnd_rules.models.enums import Ability
from dnd_rules.models.formulas import Formula, FormulaContext, Number


if TYPE_CHECKING:
    from dnd_rules.models.derived import DerivedState
    from dnd_rules.models.facts import BaseFacts


logger = get_logger(__name__)


VARIABLE_PATTERN = re.compile(r"@[A-Za-z_]\w*(?:\.[\w-]+)*")
"""Loose shape of a variable token, used to spot undeclared variables."""


def _round_half_up(value: Number) -> int:
    return math.floor(value + 0.5)


def _min(*args: Number) -> Number:
    return min(args)


def _max(*args: Number) -> Number:
    return max(args)


MAX_NESTING_DEPTH = 32
"""Deepest parenthesis, function call or unary sign chain a formula may use."""


FORMULA_FUNCTIONS: dict[str, tuple[Callable[..., Number], int | None]] = {
    "min": (_min, None),
    "max": (_max, None),
    "floor": (math.floor, 1),
    "ceil": (math.ceil, 1),
    "round": (_round_half_up, 1),
}
"""Callable helpers available to formulas, with their exact arity (None = 1 or more)."""


# =============================================================================
# Tokenizer
# =============================================================================

_NUMBER = "number"
_NAME = "name"
_VARIABLE = "variable"
_OPERATOR = "operator"
_END = "end"

_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_NAME_PATTERN = re.compile(r"[A-Za-z_]\w*")


def _tokenize(
    expression: str,
    variables: Mapping[str, Number],
) -> list[tuple[str, str | Number]]:
    tokens: list[tuple[str, str | Number]] = []
    # Longest declared token first so '@classLevel.fighter' wins over '@class'
    declared = sorted(variables, key=len, reverse=True)
    position = 0
    length = len(expression)

    while position < length:
        char = expression[position]

        if char.isspace():
            position += 1
            continue

        if char == "@":
            for token in declared:
                if expression.startswith(token, position):
                    tokens.append((_VARIABLE, variables[token]))
                    position += len(token)
                    break
            else:
                match = VARIABLE_PATTERN.match(expression, position)
                name = match.group(0) if match else char
                raise FormulaError(f"Undeclared variable {name}", expression=expression)
            continue

        number_match = _NUMBER_PATTERN.match(expression, position)
        if number_match:
            text = number_match.group(0)
            tokens.append((_NUMBER, float(text) if "." in text else int(text)))
            position = number_match.end()
            continue

        name_match = _NAME_PATTERN.match(expression, position)
        if name_match:
            tokens.append((_NAME, name_match.group(0)))
            position = name_match.end()
            continue

        if char in "+-*/(),":
            tokens.append((_OPERATOR, char))
            position += 1
            continue

        raise FormulaError(f"Unexpected character {char!r}", expression=expression)

    tokens.append((_END, ""))
    return tokens


# =============================================================================
# Parser
# =============================================================================


class _Parser:
    """Recursive-descent evaluator over a token list."""

    def __init__(self, expression: str, tokens: list[tuple[str, str | Number]]) -> None:
        self._expression = expression
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    def parse(self) -> Number:
        value = self._expression_rule()
        kind, token = self._peek()
        if kind != _END:
            self._fail(f"Unexpected token {token!r}")
        return value

    def _peek(self) -> tuple[str, str | Number]:
        return self._tokens[self._index]

    def _advance(self) -> tuple[str, str | Number]:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _accept(self, operator: str) -> bool:
        kind, token = self._peek()
        if kind == _OPERATOR and token == operator:
            self._index += 1
            return True
        return False

    def _expect(self, operator: str) -> None:
        if not self._accept(operator):
            _, token = self._peek()
            self._fail(f"Expected {operator!r} but found {token!r}")

    def _fail(self, message: str) -> NoReturn:
        raise FormulaError(message, expression=self._expression)

    def _nested(self, rule: Callable[[], Number]) -> Number:
        if self._depth >= MAX_NESTING_DEPTH:
            self._fail(f"Expression nested deeper than {MAX_NESTING_DEPTH} levels")
        self._depth += 1
        value = rule()
        self._depth -= 1
        return value

    def _expression_rule(self) -> Number:
        value = self._term()
        while True:
            if self._accept("+"):
                value = value + self._term()
            elif self._accept("-"):
                value = value - self._term()
            else:
                return value

    def _term(self) -> Number:
        value = self._unary()
        while True:
            if self._accept("*"):
                value = value * self._unary()
            elif self._accept("/"):
                divisor = self._unary()
                if divisor == 0:
                    self._fail("Division by zero")
                value = value / divisor
            else:
                return value

    def _unary(self) -> Number:
        if self._accept("-"):
            return -self._nested(self._unary)
        if self._accept("+"):
            return self._nested(self._unary)
        return self._primary()

    def _primary(self) -> Number:
        kind, token = self._advance()

        if kind in (_NUMBER, _VARIABLE):
            return token  # type: ignore[return-value]

        if kind == _NAME:
            return self._call(str(token))

        if kind == _OPERATOR and token == "(":
            value = self._nested(self._expression_rule)
            self._expect(")")
            return value

        if kind == _END:
            self._fail("Unexpected end of expression")
        self._fail(f"Unexpected token {token!r}")

    def _call(self, name: str) -> Number:
        if name not in FORMULA_FUNCTIONS:
            self._fail(f"Unknown function {name!r}")
        function, arity = FORMULA_FUNCTIONS[name]

        self._expect("(")
        arguments = [self._nested(self._expression_rule)]
        while self._accept(","):
            arguments.append(self._nested(self._expression_rule))
        self._expect(")")

        if arity is not None and len(arguments) != arity:
            self._fail(f"{name}() takes {arity} argument(s), got {len(arguments)}")
        return function(*arguments)


def _normalize(value: Number, expression: str) -> Number:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FormulaError(f"Non-finite result {value}", expression=expression)
        if value.is_integer():
            return int(value)
    return value


def parse_expression(expression: str, variables: Mapping[str, Number] | None = None) -> Number:
    """Evaluate an arithmetic expression with pre-resolved variables.

    Args:
        expression: Expression text.
        variables: Values for each ``@`` token allowed in the expression.

    Returns:
        The numeric result; integral results are returned as ``int``.

    Raises:
        FormulaError: If the expression is malformed, nests too deeply,
            references an undeclared variable, divides by zero or
            overflows.
    """
    try:
        tokens = _tokenize(expression, variables or {})
        return _normalize(_Parser(expression, tokens).parse(), expression)
    except (ArithmeticError, ValueError) as exc:
        # Oversized literals and results overflow float conversion
        raise FormulaError(f"Numeric error: {exc}", expression=expression) from exc


# =============================================================================
# Variable Resolution
# =============================================================================


def _unknown_variable(variable: str, reason: str, *, strict: bool) -> Number:
    if strict:
        raise FormulaError(reason, details={"variable": variable})
    logger.warning("Unknown formula variable", variable=variable, reason=reason)
    return 0


def resolve_variable(variable: str, context: FormulaContext, *, strict: bool = False) -> Number:
    """Resolve one ``@`` variable against a formula context.

    Args:
        variable: Variable token, e.g. '@abilities.DEX.modifier'.
        context: Character snapshot to read from.
        strict: Raise instead of resolving unknown paths to 0.

    Returns:
        The variable's value, or 0 when the path is unknown.

    Raises:
        FormulaError: If ``strict`` and the path cannot be resolved.
    """
    path = variable[1:] if variable.startswith("@") else variable
    parts = path.split(".")
    root = parts[0]

    if root == "abilities" and len(parts) >= 2:
        try:
            ability = Ability(parts[1])
        except ValueError:
            return _unknown_variable(variable, f"Unknown ability {parts[1]}", strict=strict)
        data = context.abilities.get(ability)
        if data is None:
            return _unknown_variable(variable, f"Ability {ability} not in context", strict=strict)
        if len(parts) == 2 or parts[2] == "score":
            return data.score
        if parts[2] == "modifier":
            return data.modifier
        return _unknown_variable(variable, f"Unknown ability property {parts[2]}", strict=strict)

    if root == "proficiencyBonus":
        return context.proficiency_bonus

    if root == "level":
        return context.level

    if root.lower() == "classlevel" and len(parts) >= 2:
        return context.class_levels.get(parts[1], 0)

    if root == "speed" and len(parts) >= 2:
        return context.speed.get(parts[1], 0)

    if root.lower() == "spellslots" and len(parts) >= 3 and parts[1].isdigit():
        pool = context.spell_slots.get(int(parts[1]))
        if pool is None:
            return 0
        if parts[2] == "max":
            return pool.max
        if parts[2] == "used":
            return pool.used
        return _unknown_variable(variable, f"Unknown spell slot property {parts[2]}", strict=strict)

    return _unknown_variable(variable, "Unknown variable", strict=strict)


def create_formula_context(facts: BaseFacts, derived: DerivedState) -> FormulaContext:
    """Snapshot the values formulas may reference.

    Args:
        facts: Base facts of the character being evaluated.
        derived: Derived state as accumulated so far.

    Returns:
        A read-only formula context.
    """
    return FormulaContext(
        abilities=derived.abilities,
        proficiency_bonus=derived.proficiency_bonus,
        level=facts.level,
        class_levels=facts.class_levels,
        speed=derived.speed,
        spell_slots=derived.spellcasting.slots if derived.spellcasting else {},
    )


def evaluate_formula(formula: Formula, context: FormulaContext, *, strict: bool = False) -> Number:
    """Evaluate a formula against a character snapshot.

    Args:
        formula: Formula to evaluate.
        context: Values of the formula's variables.
        strict: Raise ``FormulaError`` instead of degrading to 0.

    Returns:
        The formula value, or 0 if evaluation failed.

    Raises:
        FormulaError: Only when ``strict`` is set.
    """
    values = {
        variable: resolve_variable(variable, context, strict=strict)
        for variable in formula.variables
    }

    try:
        return parse_expression(formula.expression, values)
    except FormulaError as exc:
        if strict:
            raise
        logger.warning(
            "Formula evaluation failed",
            expression=formula.expression,
            error=exc.message,
        )
        return 0


__all__ = [
    "FORMULA_FUNCTIONS",
    "MAX_NESTING_DEPTH",
    "VARIABLE_PATTERN",
    "parse_expression",
    "resolve_variable",
    "create_formula_context",
    "evaluate_formula",
]

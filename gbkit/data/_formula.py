"""
Arithmetic formulas over named columns, e.g. "(A + B) / 2" or "sqrt(abs(`yield 2023`))".

Formulas are tokenized and parsed into a small syntax tree, then evaluated on
whole columns with numpy. Variables are looked up by name, so a variable `A`
never matches inside another variable `AB`.

Grammar::

    expr  := term (("+" | "-") term)*
    term  := unary (("*" | "/" | "%") unary)*
    unary := ("-" | "+") unary | power
    power := atom ("^" unary)?
    atom  := NUMBER | NAME | "`" any "`" | FUNC "(" expr ")" | "(" expr ")"
"""
import re
import numpy as np
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

FUNCTIONS = {
    "abs": np.abs,
    "sqrt": np.sqrt,
    "log": np.log,
    "log2": np.log2,
    "log10": np.log10,
}

OPERATORS = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.true_divide,
    "^": np.power,
    "%": np.fmod,
}

_TOKEN_REGEX = re.compile(
    r"""
    (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_.]*)
    | `(?P<quoted>[^`]*)`
    | (?P<op>[-+*/^%()])
    """,
    re.VERBOSE,
)


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


class Number(NamedTuple):
    value: float


class Variable(NamedTuple):
    name: str


class UnaryOp(NamedTuple):
    op: str
    operand: Any


class BinaryOp(NamedTuple):
    op: str
    left: Any
    right: Any


class Call(NamedTuple):
    func: str
    arg: Any


def tokenize(formula: str) -> List[Token]:
    """Split a formula into number, name, quoted-name and operator tokens"""
    tokens = []
    pos = 0
    while pos < len(formula):
        if formula[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_REGEX.match(formula, pos)
        if match is None:
            raise ValueError(
                f"Unexpected character {formula[pos]!r} at position {pos} of "
                f"formula {formula!r}."
            )
        kind = match.lastgroup
        if kind == "quoted":
            tokens.append(Token("name", match.group("quoted"), pos))
        else:
            tokens.append(Token(kind, match.group(kind), pos))
        pos = match.end()
    return tokens


class _Parser(object):
    """Recursive descent parser producing the syntax tree of a formula"""

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.i = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def _error(self, msg: str) -> ValueError:
        token = self._peek()
        where = "end" if token is None else f"position {token.pos}"
        return ValueError(f"{msg} at {where} of formula {self.formula!r}.")

    def _accept(self, *ops: str) -> Optional[Token]:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in ops:
            self.i += 1
            return token
        return None

    def _expect(self, op: str) -> None:
        if self._accept(op) is None:
            raise self._error(f"Expected '{op}'")

    def parse(self):
        if len(self.tokens) == 0:
            raise ValueError("Formula is empty.")
        tree = self._expr()
        if self._peek() is not None:
            raise self._error(f"Unexpected token {self._peek().text!r}")
        return tree

    def _expr(self):
        node = self._term()
        while True:
            token = self._accept("+", "-")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._term())

    def _term(self):
        node = self._unary()
        while True:
            token = self._accept("*", "/", "%")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._unary())

    def _unary(self):
        token = self._accept("-", "+")
        if token is not None:
            return UnaryOp(token.text, self._unary())
        return self._power()

    def _power(self):
        node = self._atom()
        if self._accept("^") is not None:
            # right associative: a^b^c == a^(b^c), and -a^b == -(a^b)
            return BinaryOp("^", node, self._unary())
        return node

    def _atom(self):
        token = self._peek()
        if token is None:
            raise self._error("Unexpected end of formula")
        if token.kind == "number":
            self.i += 1
            return Number(float(token.text))
        if token.kind == "name":
            self.i += 1
            nxt = self._peek()
            if nxt is not None and nxt.kind == "op" and nxt.text == "(":
                if token.text not in FUNCTIONS:
                    raise ValueError(
                        f"Unknown function `{token.text}` in formula {self.formula!r}. "
                        f"Supported functions: {', '.join(FUNCTIONS)}"
                    )
                self._expect("(")
                arg = self._expr()
                self._expect(")")
                return Call(token.text, arg)
            return Variable(token.text)
        if self._accept("(") is not None:
            node = self._expr()
            self._expect(")")
            return node
        raise self._error(f"Unexpected token {token.text!r}")


def _variables(node, out: Dict[str, None]) -> None:
    if isinstance(node, Variable):
        out[node.name] = None
    elif isinstance(node, UnaryOp):
        _variables(node.operand, out)
    elif isinstance(node, BinaryOp):
        _variables(node.left, out)
        _variables(node.right, out)
    elif isinstance(node, Call):
        _variables(node.arg, out)


def _evaluate(node, lookup: Mapping[str, np.ndarray]):
    if isinstance(node, Number):
        return np.float64(node.value)
    elif isinstance(node, Variable):
        if node.name not in lookup:
            raise ValueError(f"Unknown variable `{node.name}`.")
        return np.asarray(lookup[node.name], dtype=np.float64)
    elif isinstance(node, UnaryOp):
        operand = _evaluate(node.operand, lookup)
        return -operand if node.op == "-" else operand
    elif isinstance(node, BinaryOp):
        return OPERATORS[node.op](
            _evaluate(node.left, lookup), _evaluate(node.right, lookup)
        )
    elif isinstance(node, Call):
        return FUNCTIONS[node.func](_evaluate(node.arg, lookup))
    else:
        raise TypeError(f"Unknown node {node!r}")


class Formula(object):
    """
    Parsed arithmetic formula.

    Supports `+ - * / ^ %` (`%` is the remainder truncated towards zero), the
    functions abs, sqrt, log, log2 and log10, parentheses and numeric literals.
    Variables are identifiers made of letters, digits, "_" and "." that do not
    start with a digit; any other name can be written between back-ticks.

    Examples
    --------
    >>> f = Formula("(A + AB) / 2")
    >>> f.variables
    ['A', 'AB']
    >>> f.evaluate({"A": np.array([1.0, 2.0]), "AB": np.array([3.0, 4.0])})
    array([2., 3.])
    """

    def __init__(self, text: str):
        self.text = text
        self.tree = _Parser(text).parse()
        names: Dict[str, None] = {}
        _variables(self.tree, names)
        self.variables = list(names)

    def evaluate(self, lookup: Mapping[str, np.ndarray], n: int = None) -> np.ndarray:
        """Evaluate the formula

        Parameters
        ----------
        lookup : Mapping[str, np.ndarray]
            values of each variable, all of the same length
        n : int, optional
            length of the result, needed when the formula has no variable

        Returns
        -------
        np.ndarray
            result for each position; out-of-domain operations give NaN or inf
        """
        with np.errstate(all="ignore"):
            res = _evaluate(self.tree, lookup)
        if n is None:
            return np.array(res, dtype=np.float64, ndmin=1)
        return np.array(np.broadcast_to(res, (n,)), dtype=np.float64)

    def __repr__(self) -> str:
        return f"Formula({self.text!r})"

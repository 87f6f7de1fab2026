"""Immutable expression tree produced by the parser.

Every node records its ``depth`` (1 for a leaf) so that callers can bound
recursion before walking a tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .tokens import BinaryOperator, Constant, MathFunction, UnaryOperator


@dataclass(frozen=True)
class NumberNode:
    value: float
    depth: int = field(default=1, init=False, compare=False, repr=False)


@dataclass(frozen=True)
class ConstantNode:
    constant: Constant
    depth: int = field(default=1, init=False, compare=False, repr=False)


@dataclass(frozen=True)
class VariableNode:
    name: str
    depth: int = field(default=1, init=False, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOpNode:
    op: BinaryOperator
    left: "Node"
    right: "Node"
    depth: int = field(default=1, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", 1 + max(self.left.depth, self.right.depth))


@dataclass(frozen=True)
class UnaryOpNode:
    op: UnaryOperator
    operand: "Node"
    depth: int = field(default=1, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", 1 + self.operand.depth)


@dataclass(frozen=True)
class FunctionNode:
    function: MathFunction
    argument: "Node"
    depth: int = field(default=1, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", 1 + self.argument.depth)


@dataclass(frozen=True)
class Function2Node:
    """Two-argument function call such as ``gcd(12, 18)``."""

    function: MathFunction
    first: "Node"
    second: "Node"
    depth: int = field(default=1, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", 1 + max(self.first.depth, self.second.depth))


Node = Union[
    NumberNode,
    ConstantNode,
    VariableNode,
    BinaryOpNode,
    UnaryOpNode,
    FunctionNode,
    Function2Node,
]


def free_variables(node: Node) -> set[str]:
    """Return the names of all variables referenced in a tree."""
    if isinstance(node, VariableNode):
        return {node.name}
    if isinstance(node, BinaryOpNode):
        return free_variables(node.left) | free_variables(node.right)
    if isinstance(node, UnaryOpNode):
        return free_variables(node.operand)
    if isinstance(node, FunctionNode):
        return free_variables(node.argument)
    if isinstance(node, Function2Node):
        return free_variables(node.first) | free_variables(node.second)
    return set()

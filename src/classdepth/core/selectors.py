"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/selectors.py

Column selection: turn selector terms ("all_predictors()", "-x", "starts_with('a')")
into concrete column names against a summarized schema.

Resolution rules:
  • terms are applied left to right; positive terms add columns, "-" terms remove them
  • a leading "-" term starts from every column
  • the result keeps schema order, never term order
  • unknown names/selectors and empty results are errors
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from classdepth.core.contracts import is_numeric
from classdepth.core.errors import ContractError

DEFAULT_ROLE = "predictor"

_CALL = re.compile(r"^(?P<fn>[A-Za-z_][A-Za-z0-9_]*)\((?P<arg>.*)\)$")


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: str  # numeric | nominal
    role: str


def summarize(df: pd.DataFrame, roles: Optional[Mapping[str, str]] = None) -> List[ColumnInfo]:
    odd = [col for col in df.columns if not isinstance(col, str)]
    if odd:
        raise ContractError(f"column labels must be strings; got {odd[:5]!r} (rename the columns first)")
    roles = dict(roles or {})
    unknown = sorted(set(roles) - set(df.columns))
    if unknown:
        raise ContractError(f"roles reference column(s) not in data: {unknown}")
    info: List[ColumnInfo] = []
    for col in df.columns:
        kind = "numeric" if is_numeric(df[col]) else "nominal"
        info.append(ColumnInfo(name=col, type=kind, role=roles.get(col, DEFAULT_ROLE)))
    return info


def _unquote(arg: str) -> str:
    arg = arg.strip()
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in {"'", '"'}:
        return arg[1:-1]
    return arg


def _selectors() -> Dict[str, Callable[[ColumnInfo, str], bool]]:
    return {
        "everything": lambda c, _: True,
        "all_predictors": lambda c, _: c.role == "predictor",
        "all_outcomes": lambda c, _: c.role == "outcome",
        "all_numeric": lambda c, _: c.type == "numeric",
        "all_nominal": lambda c, _: c.type == "nominal",
        "has_role": lambda c, a: c.role == a,
        "has_type": lambda c, a: c.type == a,
        "starts_with": lambda c, a: c.name.startswith(a),
        "ends_with": lambda c, a: c.name.endswith(a),
        "contains": lambda c, a: a in c.name,
        "matches": lambda c, a: re.search(a, c.name) is not None,
    }


SELECTORS = _selectors()
_NEEDS_ARG = {"has_role", "has_type", "starts_with", "ends_with", "contains", "matches"}


def _match_term(term: str, info: Sequence[ColumnInfo]) -> List[str]:
    m = _CALL.match(term)
    if m is None:
        names = [c.name for c in info]
        if term not in names:
            raise ContractError(f"selector '{term}': column not found in data")
        return [term]
    fn, arg = m.group("fn"), _unquote(m.group("arg"))
    pred = SELECTORS.get(fn)
    if pred is None:
        raise ContractError(f"unknown selector '{fn}()'. Known: {', '.join(sorted(SELECTORS))}")
    if fn in _NEEDS_ARG and not arg:
        raise ContractError(f"selector '{fn}()' needs an argument")
    if fn == "matches":
        try:
            re.compile(arg)
        except re.error as e:
            raise ContractError(f"selector '{term}': invalid regular expression: {e}") from e
    return [c.name for c in info if pred(c, arg)]


def resolve(terms: Sequence[str], info: Sequence[ColumnInfo]) -> List[str]:
    """Resolve selector terms to column names in schema order."""
    if not terms:
        raise ContractError("no selector terms given")
    chosen: set[str] = set()
    for i, raw in enumerate(terms):
        term = str(raw).strip()
        if term.startswith("-"):
            if i == 0:
                chosen = {c.name for c in info}
            chosen -= set(_match_term(term[1:].strip(), info))
        else:
            chosen |= set(_match_term(term, info))
    out = [c.name for c in info if c.name in chosen]
    if not out:
        raise ContractError(f"selectors {list(terms)} matched no columns")
    return out

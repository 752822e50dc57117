"""Match ``beginning_of_<unit>..end_of_<unit>`` range pairs.

The matcher works on a small read-only view of a range expression (receiver
text, method name and argument texts for each endpoint) so that it stays
independent of the parser that produced it. Every input maps to either a
``Match`` carrying the replacement text or ``None``.
"""

import dataclasses
import enum
import types


class Unit(enum.Enum):
    """Calendar granularities that have a beginning/end accessor pair."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclasses.dataclass(frozen=True)
class Span:
    """Accessor names for one unit."""

    unit: Unit
    begin_method: str
    end_method: str
    whole_method: str


SPANS: types.MappingProxyType[Unit, Span] = types.MappingProxyType(
    {
        unit: Span(
            unit=unit,
            begin_method=f"beginning_of_{unit.value}",
            end_method=f"end_of_{unit.value}",
            whole_method=f"all_{unit.value}",
        )
        for unit in Unit
    }
)

BEGIN_TO_END: types.MappingProxyType[str, str] = types.MappingProxyType(
    {span.begin_method: span.end_method for span in SPANS.values()}
)

BEGIN_TO_WHOLE: types.MappingProxyType[str, str] = types.MappingProxyType(
    {span.begin_method: span.whole_method for span in SPANS.values()}
)

# The only whole-span accessor that takes an argument (the week start day).
_ARGUMENT_METHOD = SPANS[Unit.WEEK].begin_method


@dataclasses.dataclass(frozen=True)
class EndpointCall:
    """One side of a range as seen by the matcher.

    Attributes:
        receiver_source: Source text of the call receiver, or ``None`` when
            the endpoint has no receiver.
        method_name: Called method name, or ``None`` when the endpoint is not
            a plain method call.
        arguments: Source text of each argument, in order.
    """

    receiver_source: str | None
    method_name: str | None
    arguments: tuple[str, ...] = ()

    @property
    def is_call(self) -> bool:
        return self.method_name is not None


@dataclasses.dataclass(frozen=True)
class RangeExpression:
    """A binary range; either endpoint is ``None`` for open-ended ranges."""

    begin: EndpointCall | None
    end: EndpointCall | None


@dataclasses.dataclass(frozen=True)
class Match:
    """A matched range and the text that should replace it."""

    replacement: str


def _is_paired(begin: EndpointCall, end: EndpointCall) -> bool:
    """Return True if both endpoints call the same unit's accessors on one receiver."""
    if begin.receiver_source is None or begin.receiver_source != end.receiver_source:
        return False
    expected_end = BEGIN_TO_END.get(begin.method_name or "")
    return expected_end is not None and expected_end == end.method_name


def match(range_expr: RangeExpression) -> Match | None:
    """Return the whole-span replacement for *range_expr*, or None.

    ``x.beginning_of_day..x.end_of_day`` becomes ``x.all_day``.  Both
    endpoints must be method calls on textually identical receivers, and the
    end method must be the partner of the begin method.  Arguments are only
    accepted for the week unit, where both sides must pass the same single
    argument: ``x.beginning_of_week(:sunday)..x.end_of_week(:sunday)``
    becomes ``x.all_week(:sunday)``.

    Args:
        range_expr: The range to inspect.  Exclusive ranges must be filtered
            out by the caller.

    Returns:
        A Match with the replacement text, or None if the range is not a
        recognised pair.
    """
    begin, end = range_expr.begin, range_expr.end
    if begin is None or end is None or not begin.is_call or not end.is_call:
        return None
    if not _is_paired(begin, end):
        return None

    replacement = f"{begin.receiver_source}.{BEGIN_TO_WHOLE[begin.method_name]}"

    if begin.method_name == _ARGUMENT_METHOD and len(begin.arguments) == 1:
        if len(end.arguments) != 1 or end.arguments[0] != begin.arguments[0]:
            return None
        return Match(replacement=f"{replacement}({begin.arguments[0]})")
    if begin.arguments or end.arguments:
        return None
    return Match(replacement=replacement)

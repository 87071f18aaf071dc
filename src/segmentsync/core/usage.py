"""Variable bookkeeping: where variables are used, and auto-registration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence, Union

from segmentsync.core.ids import generate_id
from segmentsync.core.models import Segment, Variable
from segmentsync.core.tokenizer import extract_variable_names, variable_names_in


@dataclass
class SegmentUse:
    segment_index: int
    segment_id: str
    content: str


@dataclass
class VariableUsage:
    name: str
    used_in: List[SegmentUse] = field(default_factory=list)

    @property
    def is_used(self) -> bool:
        return bool(self.used_in)


@dataclass
class UsageReport:
    used: List[str] = field(default_factory=list)
    unused: List[str] = field(default_factory=list)
    by_variable: Dict[str, VariableUsage] = field(default_factory=dict)


@dataclass
class DeletionImpact:
    can_delete: bool
    warning_message: str = ""
    affected_segments: List[SegmentUse] = field(default_factory=list)


def analyze_variable_usage(variables: Sequence[Variable], segments: Sequence[Segment]) -> UsageReport:
    """Collect, per variable id, the segments whose template references it."""
    report = UsageReport()
    for var in variables or []:
        report.by_variable[var.id] = VariableUsage(name=var.name)

    for index, seg in enumerate(segments or []):
        content = str(seg.content or "")
        names = set(variable_names_in(content))
        for var in variables or []:
            if var.name in names:
                report.by_variable[var.id].used_in.append(SegmentUse(index, seg.id, content))

    for var in variables or []:
        usage = report.by_variable[var.id]
        target = report.used if usage.is_used else report.unused
        if var.id not in target:
            target.append(var.id)
    return report


def analyze_deletion_impact(
    variable_id: str,
    variables: Sequence[Variable],
    segments: Sequence[Segment],
) -> DeletionImpact:
    """Whether a variable can be removed without orphaning placeholders.

    Unknown ids and unused variables can always be deleted.
    """
    var = next((v for v in variables or [] if v.id == variable_id), None)
    if var is None:
        return DeletionImpact(can_delete=True)

    usage = analyze_variable_usage(variables, segments).by_variable.get(variable_id)
    if usage is None or not usage.is_used:
        return DeletionImpact(can_delete=True)

    affected = usage.used_in
    listing = "\n".join(f"{n}. {use.content}" for n, use in enumerate(affected, start=1))
    message = (
        f"Variable '{var.name}' is used in {len(affected)} place(s).\n\n"
        f"Deleting it affects these segments:\n{listing}"
    )
    return DeletionImpact(can_delete=False, warning_message=message, affected_segments=list(affected))


def guess_variable_type(name: str) -> str:
    """``phone`` for names starting with ``TEL`` (any case), else ``text``."""
    return "phone" if str(name or "").upper().startswith("TEL") else "text"


def add_missing_variables(
    text_or_lines: Union[str, Iterable[str]],
    variables: List[Variable],
    id_factory: Callable[[], str] = generate_id,
) -> List[Variable]:
    """Append an empty variable for each placeholder name not yet defined.

    Returns the *same* list object when nothing was added, so callers can
    detect a no-op with ``is``.
    """
    names = extract_variable_names(text_or_lines)
    if not names:
        return variables
    existing = {str(v.name) for v in variables or []}
    missing = [n for n in names if n not in existing]
    if not missing:
        return variables
    added = [Variable(id=id_factory(), name=n, type=guess_variable_type(n), value="") for n in missing]
    return list(variables or []) + added

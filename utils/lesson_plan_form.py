"""Lesson plan wizard state.

The draft is an immutable :class:`LessonPlanDraft`; every user interaction is
an action object and :func:`reduce` returns the next draft. The Flask routes
keep the serialised draft in the session between requests.

Teachers may drop optional sections from the form; the wizard then skips
them and they are saved empty. ``step`` always indexes :func:`active_steps`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from utils.allocations import AllocationSet
from utils.validators import is_smart_objective, validate_units

TEXT_FIELDS = (
    "subject",
    "grade",
    "objectives",
    "materials",
    "warmup",
    "introduction",
    "mainActivity",
    "closure",
    "differentiation",
    "formativeAssessment",
    "summativeAssessment",
    "standards",
)

STEPS: Tuple[Tuple[str, ...], ...] = (
    ("subject", "grade"),
    ("objectives", "standards"),
    ("materials", "warmup"),
    ("introduction", "mainActivity"),
    ("closure", "differentiation"),
    ("formativeAssessment", "summativeAssessment"),
    ("assessments",),
    ("units",),
)

LOCKED_FIELDS = frozenset({"subject", "grade", "objectives", "introduction", "assessments", "units"})
OPTIONAL_FIELDS = tuple(name for name in TEXT_FIELDS if name not in LOCKED_FIELDS)

# Fields with their own messages in step_errors.
_SPECIAL_FIELDS = {"objectives", "introduction", "assessments", "units", "grade"}


@dataclass(frozen=True)
class Unit:
    title: str = ""
    duration: str = ""


@dataclass(frozen=True)
class LessonPlanDraft:
    fields: Tuple[Tuple[str, str], ...] = ()
    assessments: AllocationSet = field(default_factory=AllocationSet)
    units: Tuple[Unit, ...] = ()
    step: int = 0
    excluded: FrozenSet[str] = frozenset()
    # Set when the draft was loaded from a saved plan
    plan_id: Optional[int] = None

    def get(self, name: str) -> str:
        return dict(self.fields).get(name, "")

    def saved_value(self, name: str) -> str:
        """Text stored for ``name``; dropped sections are saved empty."""
        return "" if name in self.excluded else self.get(name)

    @property
    def total_units(self) -> int:
        return len(self.units)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {name: self.get(name) for name in TEXT_FIELDS}
        data["assessments"] = self.assessments.to_dict()
        data["units"] = [{"title": u.title, "duration": u.duration} for u in self.units]
        data["totalUnits"] = self.total_units
        data["step"] = self.step
        data["excludedFields"] = [name for name in OPTIONAL_FIELDS if name in self.excluded]
        data["planId"] = self.plan_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "LessonPlanDraft":
        data = data or {}
        fields_ = tuple((name, str(data[name])) for name in TEXT_FIELDS if data.get(name))
        assessments = AllocationSet({str(k): int(v) for k, v in (data.get("assessments") or {}).items()})
        units = tuple(Unit(str(u.get("title") or ""), str(u.get("duration") or "")) for u in data.get("units") or [])
        excluded = frozenset(name for name in data.get("excludedFields") or () if name in OPTIONAL_FIELDS)
        plan_id = data.get("planId")
        draft = cls(
            fields=fields_,
            assessments=assessments,
            units=units,
            step=int(data.get("step") or 0),
            excluded=excluded,
            plan_id=int(plan_id) if plan_id is not None else None,
        )
        return _clamp_step(draft)

    @classmethod
    def from_plan(cls, plan: Mapping[str, Any], plan_id: int) -> "LessonPlanDraft":
        """Draft for editing a saved plan; optional sections saved empty start dropped."""
        data = dict(plan)
        data["excludedFields"] = [name for name in OPTIONAL_FIELDS if not (plan.get(name) or "").strip()]
        data["planId"] = plan_id
        data["step"] = 0
        return cls.from_dict(data)


def active_steps(draft: LessonPlanDraft) -> Tuple[Tuple[str, ...], ...]:
    """STEPS without dropped fields; steps left empty disappear."""
    steps = (tuple(n for n in names if n not in draft.excluded) for names in STEPS)
    return tuple(names for names in steps if names)


def _clamp_step(draft: LessonPlanDraft) -> LessonPlanDraft:
    last = len(active_steps(draft)) - 1
    step = max(0, min(draft.step, last))
    return draft if step == draft.step else replace(draft, step=step)


@dataclass(frozen=True)
class SetField:
    name: str
    value: str


@dataclass(frozen=True)
class ToggleField:
    name: str


@dataclass(frozen=True)
class ToggleAllocation:
    name: str


@dataclass(frozen=True)
class SetAllocation:
    name: str
    raw: Any


@dataclass(frozen=True)
class RemoveAllocation:
    name: str


@dataclass(frozen=True)
class SetTotalUnits:
    total: Any


@dataclass(frozen=True)
class SetUnit:
    index: int
    title: str = ""
    duration: str = ""


@dataclass(frozen=True)
class NextStep:
    pass


@dataclass(frozen=True)
class PreviousStep:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[
    SetField, ToggleField, ToggleAllocation, SetAllocation, RemoveAllocation,
    SetTotalUnits, SetUnit, NextStep, PreviousStep, Reset,
]


class DraftActionError(ValueError):
    pass


class UnknownAction(DraftActionError):
    pass


class LockedField(DraftActionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name[:1].upper()}{name[1:]} is a required field and cannot be deselected.")


def step_errors(draft: LessonPlanDraft, step: int) -> List[str]:
    """Messages that keep the wizard from leaving ``step``."""
    names = active_steps(draft)[step]
    errors: List[str] = []
    if "objectives" in names and not is_smart_objective(draft.get("objectives")):
        errors.append(
            "Objectives must be SMART (e.g., include 'will be able to' and a measurable outcome like '90% accuracy')."
        )
    if "assessments" in names and (len(draft.assessments) == 0 or not draft.assessments.is_valid()):
        errors.append("At least one assessment must be selected, and percentages must total exactly 100%.")
    if "units" in names:
        units = [{"title": u.title, "duration": u.duration} for u in draft.units]
        if not validate_units(units, draft.total_units):
            errors.append("At least one unit must be defined, and all unit titles and durations must be filled.")
    if "introduction" in names and not draft.get("introduction").strip():
        errors.append("Introduction is required and must be filled.")
    if "grade" in names and not draft.get("grade").strip():
        errors.append("Grade is required and must be selected.")
    if any(not draft.get(n).strip() for n in names if n not in _SPECIAL_FIELDS):
        errors.append("Please fill in all required fields.")
    return errors


def all_errors(draft: LessonPlanDraft) -> List[str]:
    errors: List[str] = []
    for step in range(len(active_steps(draft))):
        errors.extend(step_errors(draft, step))
    return errors


def _set_field(draft: LessonPlanDraft, name: str, value: str) -> LessonPlanDraft:
    if name not in TEXT_FIELDS:
        raise UnknownAction(f"Unknown field {name!r}")
    values = dict(draft.fields)
    values[name] = value or ""
    return replace(draft, fields=tuple((k, values[k]) for k in TEXT_FIELDS if values.get(k)))


def _toggle_field(draft: LessonPlanDraft, name: str) -> LessonPlanDraft:
    if name in LOCKED_FIELDS:
        raise LockedField(name)
    if name not in OPTIONAL_FIELDS:
        raise UnknownAction(f"Unknown field {name!r}")
    # Typed text is kept so re-selecting a section restores it
    excluded = draft.excluded ^ {name}
    return _clamp_step(replace(draft, excluded=frozenset(excluded)))


def _resize_units(draft: LessonPlanDraft, raw: Any) -> LessonPlanDraft:
    try:
        total = int(raw)
    except (TypeError, ValueError):
        return draft
    if total < 1:
        return draft
    units = tuple(draft.units[i] if i < len(draft.units) else Unit() for i in range(total))
    return replace(draft, units=units)


def _set_unit(draft: LessonPlanDraft, action: SetUnit) -> LessonPlanDraft:
    if not 0 <= action.index < len(draft.units):
        return draft
    units = list(draft.units)
    units[action.index] = Unit(action.title or "", action.duration or "")
    return replace(draft, units=tuple(units))


def reduce(draft: LessonPlanDraft, action: Action) -> LessonPlanDraft:
    if isinstance(action, SetField):
        return _set_field(draft, action.name, action.value)
    if isinstance(action, ToggleField):
        return _toggle_field(draft, action.name)
    if isinstance(action, ToggleAllocation):
        return replace(draft, assessments=draft.assessments.toggle(action.name))
    if isinstance(action, SetAllocation):
        return replace(draft, assessments=draft.assessments.set_value(action.name, action.raw))
    if isinstance(action, RemoveAllocation):
        return replace(draft, assessments=draft.assessments.remove(action.name))
    if isinstance(action, SetTotalUnits):
        return _resize_units(draft, action.total)
    if isinstance(action, SetUnit):
        return _set_unit(draft, action)
    if isinstance(action, NextStep):
        if draft.step >= len(active_steps(draft)) - 1 or step_errors(draft, draft.step):
            return draft
        return replace(draft, step=draft.step + 1)
    if isinstance(action, PreviousStep):
        return replace(draft, step=max(0, draft.step - 1))
    if isinstance(action, Reset):
        return LessonPlanDraft()
    raise UnknownAction(f"Unsupported action {action!r}")


_ACTION_TYPES = {
    "set_field": lambda p: SetField(str(p.get("name") or ""), str(p.get("value") or "")),
    "toggle_field": lambda p: ToggleField(str(p.get("name") or "")),
    "toggle_allocation": lambda p: ToggleAllocation(str(p.get("name") or "")),
    "set_allocation": lambda p: SetAllocation(str(p.get("name") or ""), p.get("value")),
    "remove_allocation": lambda p: RemoveAllocation(str(p.get("name") or "")),
    "set_total_units": lambda p: SetTotalUnits(p.get("value")),
    "set_unit": lambda p: SetUnit(int(p.get("index", -1)), str(p.get("title") or ""), str(p.get("duration") or "")),
    "next_step": lambda p: NextStep(),
    "previous_step": lambda p: PreviousStep(),
    "reset": lambda p: Reset(),
}


def action_from_payload(payload: Mapping[str, Any]) -> Action:
    """Build an action from a JSON body like ``{"type": "toggle_allocation", "name": "Quizzes"}``."""
    if not isinstance(payload, Mapping):
        raise UnknownAction("Action body must be an object")
    kind = str(payload.get("type") or "")
    factory = _ACTION_TYPES.get(kind)
    if factory is None:
        raise UnknownAction(f"Unknown action type {kind!r}")
    try:
        return factory(payload)
    except (TypeError, ValueError) as exc:
        raise UnknownAction(str(exc)) from exc

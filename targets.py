"""Exam target expansion.

An exam names the class-sections it applies to either through the
``exam_classes`` list or, for older records, through a single
``class_id``/``section_id`` pair. Everything that needs the target set goes
through :func:`resolve_exam_targets`; nothing else branches on the shape.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple, Union


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class ClassSectionKey:
    class_name: str
    section: str

    @property
    def label(self) -> str:
        return f"Class {self.class_name} Section {self.section}"


@dataclass(frozen=True)
class TargetEntry:
    class_id: str
    section_id: str
    subjects: Tuple[int, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "class_id": self.class_id,
            "section_id": self.section_id,
            "subjects": list(self.subjects),
        }


@dataclass(frozen=True)
class LegacyTargets:
    class_id: str
    section_id: str


@dataclass(frozen=True)
class MultiTargets:
    targets: Tuple[TargetEntry, ...]


ExamTargets = Union[LegacyTargets, MultiTargets]


def _entry(raw: Any) -> Optional[TargetEntry]:
    if isinstance(raw, dict):
        class_id = _clean(raw.get("class_id"))
        section_id = _clean(raw.get("section_id"))
        subjects = raw.get("subjects") or []
    else:
        class_id = _clean(getattr(raw, "class_id", None))
        section_id = _clean(getattr(raw, "section_id", None))
        subjects = getattr(raw, "subjects", None) or []
    if not class_id or not section_id:
        return None
    return TargetEntry(class_id, section_id, tuple(subjects))


def build_targets(
    exam_classes: Optional[Iterable[Any]],
    class_id: Optional[str] = None,
    section_id: Optional[str] = None,
) -> ExamTargets:
    """Pick the target shape: a non-empty multi-target list wins over the legacy pair."""
    entries = [e for e in (_entry(raw) for raw in exam_classes or []) if e is not None]
    if entries:
        return MultiTargets(tuple(entries))
    return LegacyTargets(_clean(class_id), _clean(section_id))


def exam_targets(exam) -> ExamTargets:
    return build_targets(exam.exam_classes, exam.class_id, exam.section_id)


def expand(targets: ExamTargets) -> List[ClassSectionKey]:
    """Ordered, de-duplicated class-sections of a target set."""
    if isinstance(targets, MultiTargets):
        pairs = [ClassSectionKey(t.class_id, t.section_id) for t in targets.targets]
    elif targets.class_id and targets.section_id:
        pairs = [ClassSectionKey(targets.class_id, targets.section_id)]
    else:
        pairs = []

    seen = set()
    result = []
    for pair in pairs:
        if pair not in seen:
            seen.add(pair)
            result.append(pair)
    return result


def resolve_exam_targets(exam) -> List[ClassSectionKey]:
    return expand(exam_targets(exam))


def stored_entries(targets: ExamTargets) -> List[dict]:
    """Canonical ``exam_classes`` value to persist, one entry per class-section."""
    subjects = {}
    if isinstance(targets, MultiTargets):
        for t in targets.targets:
            merged = subjects.setdefault(ClassSectionKey(t.class_id, t.section_id), [])
            merged.extend(s for s in t.subjects if s not in merged)
    return [
        TargetEntry(pair.class_name, pair.section, tuple(subjects.get(pair, ()))).to_dict()
        for pair in expand(targets)
    ]


def labels(pairs: Iterable[ClassSectionKey]) -> str:
    return ", ".join(pair.label for pair in pairs)

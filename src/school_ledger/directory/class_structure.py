"""Sections and the classes (arms) they contain."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SectionClasses:
    section: str
    classes: tuple[str, ...]


def _make_ab(prefix: str, count: int) -> tuple[str, ...]:
    # ("Nursery 1 A", "Nursery 1 B", "Nursery 2 A", ...)
    out: list[str] = []
    for n in range(1, count + 1):
        out.extend((f"{prefix} {n} A", f"{prefix} {n} B"))
    return tuple(out)


CLASS_STRUCTURE: tuple[SectionClasses, ...] = (
    SectionClasses("Pre-Kg", ("Pre-Kg",)),
    SectionClasses("Nursery", _make_ab("Nursery", 3)),
    SectionClasses("Basic", _make_ab("Basic", 5)),
    SectionClasses("Junior Secondary (JS)", ("JS1 A", "JS1 B", "JS2 A", "JS2 B", "JS3 A", "JS3 B")),
    SectionClasses(
        "Senior Secondary (SS)",
        (
            "SS1 A",
            "SS1 B",
            "SS2 A (Science)",
            "SS2 B (Arts and Social Sciences)",
            "SS3 A (Science)",
            "SS3 B (Arts and Social Sciences)",
        ),
    ),
)

ALL_CLASSES: tuple[str, ...] = tuple(c for s in CLASS_STRUCTURE for c in s.classes)


def find_section(name: str) -> Optional[SectionClasses]:
    for section in CLASS_STRUCTURE:
        if section.section == name:
            return section
    return None


def section_of(class_name: str) -> Optional[str]:
    for section in CLASS_STRUCTURE:
        if class_name in section.classes:
            return section.section
    return None

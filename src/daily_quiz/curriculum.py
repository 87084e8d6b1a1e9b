"""Exam curriculum loading, validation, and flattening.

A curriculum is a ``domains -> sections -> topics`` tree for one exam code,
stored as TOML or YAML. Loading validates every node and either returns a
complete immutable :class:`ExamCurriculum` or raises :class:`CurriculumError`.
:func:`flatten_topics` produces the ordered topic list the rotation scheduler
indexes into, so its order must only ever follow declaration order.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

import yaml

from .core.config import TomlConfigError, load_toml

__all__ = [
    "CURRICULUM_SUFFIXES",
    "CurriculumError",
    "Domain",
    "ExamCurriculum",
    "FlattenedTopic",
    "Section",
    "Topic",
    "find_curriculum",
    "flatten_topics",
    "load_curriculum",
    "parse_curriculum",
]

CURRICULUM_SUFFIXES: tuple[str, ...] = (".toml", ".yaml", ".yml")


class CurriculumError(RuntimeError):
    """Raised when a curriculum file is missing or structurally invalid."""


@dataclass(frozen=True)
class Topic:
    name: str
    weight: float = 1.0


@dataclass(frozen=True)
class Section:
    name: str
    topics: tuple[Topic, ...]


@dataclass(frozen=True)
class Domain:
    name: str
    percentage: float
    sections: tuple[Section, ...]


@dataclass(frozen=True)
class ExamCurriculum:
    exam_code: str
    exam_name: str
    domains: tuple[Domain, ...]

    @property
    def topic_count(self) -> int:
        return sum(
            len(section.topics)
            for domain in self.domains
            for section in domain.sections
        )


@dataclass(frozen=True)
class FlattenedTopic:
    """A single topic carrying its exam, domain, and section context."""

    exam_code: str
    domain: str
    section: str
    topic: str
    weight: float = 1.0

    @property
    def path(self) -> str:
        return f"{self.domain} > {self.section} > {self.topic}"


def find_curriculum(exam_code: str, *, search_dirs: Iterable[Path]) -> Path:
    """Return the first ``<exam_code>.{toml,yaml,yml}`` found in ``search_dirs``."""

    stem = exam_code.strip().lower()
    if not stem:
        raise CurriculumError("Exam code must be a non-empty string.")
    searched: List[Path] = []
    for directory in search_dirs:
        for suffix in CURRICULUM_SUFFIXES:
            candidate = Path(directory) / f"{stem}{suffix}"
            if candidate.is_file():
                return candidate
            searched.append(candidate)
    listing = ", ".join(str(p) for p in searched) or "(no search directories)"
    raise CurriculumError(
        f"No curriculum found for exam '{exam_code}'. Looked for: {listing}"
    )


def load_curriculum(path: Path) -> ExamCurriculum:
    """Read and validate the curriculum stored at ``path``."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in CURRICULUM_SUFFIXES:
        raise CurriculumError(
            f"Unsupported curriculum format '{suffix or path.name}'. "
            f"Expected one of: {', '.join(CURRICULUM_SUFFIXES)}."
        )
    if not path.is_file():
        raise CurriculumError(f"Curriculum file not found: {path}")

    if suffix == ".toml":
        try:
            data: Any = load_toml(path)
        except TomlConfigError as exc:
            raise CurriculumError(str(exc)) from exc
    else:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise CurriculumError(
                f"Failed to parse curriculum YAML {path}: {exc}"
            ) from exc
    return parse_curriculum(data)


def parse_curriculum(data: Any) -> ExamCurriculum:
    """Validate a decoded curriculum document and build the immutable tree."""

    if not isinstance(data, Mapping):
        raise CurriculumError("Curriculum must be a mapping at the top level.")
    exam_code = _require_text(data, "exam_code", "exam_code")
    exam_name = _require_text(data, "exam_name", "exam_name")
    raw_domains = _require_list(data, "domains", "domains")
    domains = tuple(
        _parse_domain(raw, f"domains[{i}]")
        for i, raw in enumerate(raw_domains)
    )
    return ExamCurriculum(
        exam_code=exam_code,
        exam_name=exam_name,
        domains=domains,
    )


def flatten_topics(curriculum: ExamCurriculum) -> List[FlattenedTopic]:
    """Flatten ``curriculum`` depth-first in declaration order."""

    return [
        FlattenedTopic(
            exam_code=curriculum.exam_code,
            domain=domain.name,
            section=section.name,
            topic=topic.name,
            weight=topic.weight,
        )
        for domain in curriculum.domains
        for section in domain.sections
        for topic in section.topics
    ]


def _parse_domain(raw: Any, where: str) -> Domain:
    if not isinstance(raw, Mapping):
        raise CurriculumError(f"{where} must be a table.")
    name = _require_text(raw, "name", f"{where}.name")
    percentage = _require_number(raw, "percentage", f"{where}.percentage")
    if not 0 <= percentage <= 100:
        raise CurriculumError(
            f"{where}.percentage must be between 0 and 100, got {percentage}."
        )
    sections = tuple(
        _parse_section(item, f"{where}.sections[{i}]")
        for i, item in enumerate(
            _require_list(raw, "sections", f"{where}.sections")
        )
    )
    return Domain(name=name, percentage=float(percentage), sections=sections)


def _parse_section(raw: Any, where: str) -> Section:
    if not isinstance(raw, Mapping):
        raise CurriculumError(f"{where} must be a table.")
    name = _require_text(raw, "name", f"{where}.name")
    topics = tuple(
        _parse_topic(item, f"{where}.topics[{i}]")
        for i, item in enumerate(_require_list(raw, "topics", f"{where}.topics"))
    )
    return Section(name=name, topics=topics)


def _parse_topic(raw: Any, where: str) -> Topic:
    if not isinstance(raw, Mapping):
        raise CurriculumError(f"{where} must be a table.")
    name = _require_text(raw, "name", f"{where}.name")
    if raw.get("weight") is None:
        return Topic(name=name)
    weight = _require_number(raw, "weight", f"{where}.weight")
    if not weight > 0:
        raise CurriculumError(f"{where}.weight must be positive, got {weight}.")
    return Topic(name=name, weight=float(weight))


def _require_text(raw: Mapping[str, Any], key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CurriculumError(f"{where} must be a non-empty string.")
    return value.strip()


def _require_list(raw: Mapping[str, Any], key: str, where: str) -> Sequence[Any]:
    value = raw.get(key)
    if not isinstance(value, list):
        raise CurriculumError(f"{where} must be a list.")
    return value


def _require_number(raw: Mapping[str, Any], key: str, where: str) -> float:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise CurriculumError(f"{where} must be a number.")
    if not math.isfinite(value):
        raise CurriculumError(f"{where} must be a finite number, got {value}.")
    return float(value)

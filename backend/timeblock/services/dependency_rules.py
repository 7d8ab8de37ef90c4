"""
Declarative rules for inferring task dependencies from task names.

The tables here are pure data plus small matching helpers, so the rule set can
be unit-tested without building a graph:

- ``DEPENDENCY_RULES``: producer phrases are prerequisites of consumer phrases
- ``FORBIDDEN_EDGES``: edge directions removed after inference
- ``TOPIC_KEYWORDS``: coarse subject matter used as a confidence check
- ``TASK_TYPE_PHRASES``: setup -> learn -> practice -> build -> test -> final
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Union

from timeblock.models.enums import TaskType
from timeblock.models.task import SchedulableTask

# A phrase is a substring, a compiled pattern, or a tuple whose parts must all match
Phrase = Union[str, re.Pattern, tuple]

PART_ONE = re.compile(r"\bpart\s*(?:1|i)\b", re.IGNORECASE)
PART_TWO = re.compile(r"\bpart\s*(?:2|ii)\b", re.IGNORECASE)

FINAL_REVIEW_PHRASES: tuple[Phrase, ...] = (
    "final review",
    "final polish",
    ("final", "review"),
    ("final", "polish"),
)


def phrase_in(phrase: Phrase, text: str) -> bool:
    """Check a single phrase against an already lower-cased text."""
    if isinstance(phrase, tuple):
        return all(phrase_in(part, text) for part in phrase)
    if isinstance(phrase, re.Pattern):
        return phrase.search(text) is not None
    return phrase in text


def any_phrase_in(phrases: Iterable[Phrase], text: str) -> bool:
    return any(phrase_in(phrase, text) for phrase in phrases)


def _plain_strings(phrases: Iterable[Phrase]) -> set[str]:
    strings: set[str] = set()
    for phrase in phrases:
        if isinstance(phrase, tuple):
            strings |= _plain_strings(phrase)
        elif isinstance(phrase, str):
            strings.add(phrase)
    return strings


@dataclass(frozen=True)
class DependencyRule:
    """Tasks matching ``producers`` must happen before tasks matching ``consumers``."""

    name: str
    producers: tuple[Phrase, ...]
    consumers: tuple[Phrase, ...]
    excluded_producers: tuple[Phrase, ...] = ()
    excluded_consumers: tuple[Phrase, ...] = ()

    def is_producer(self, lower_name: str) -> bool:
        return any_phrase_in(self.producers, lower_name) and not any_phrase_in(
            self.excluded_producers, lower_name
        )

    def is_consumer(self, lower_name: str) -> bool:
        return any_phrase_in(self.consumers, lower_name) and not any_phrase_in(
            self.excluded_consumers, lower_name
        )

    @property
    def action_phrases(self) -> set[str]:
        """Words that describe the action, stripped before topic extraction."""
        return _plain_strings(self.producers) | _plain_strings(self.consumers)


@dataclass(frozen=True)
class ForbiddenEdge:
    """A dependent matching ``dependents`` may never depend on a ``prerequisites`` match."""

    name: str
    dependents: tuple[Phrase, ...]
    prerequisites: tuple[Phrase, ...]
    excluded_dependents: tuple[Phrase, ...] = ()

    def forbids(self, dependent_lower: str, prerequisite_lower: str) -> bool:
        return (
            any_phrase_in(self.dependents, dependent_lower)
            and not any_phrase_in(self.excluded_dependents, dependent_lower)
            and any_phrase_in(self.prerequisites, prerequisite_lower)
        )


DEPENDENCY_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(
        name="outline_before_build",
        producers=("outline", "structure", "plan"),
        consumers=("create", "build", "write", "develop", "make"),
        excluded_producers=("execute",),
    ),
    DependencyRule(
        name="research_before_writing",
        producers=("research",),
        consumers=("prepare", "create", "write", "develop"),
    ),
    DependencyRule(
        name="gather_before_build",
        producers=("gather", "collect", "materials"),
        consumers=("build", "create", "assemble", "make"),
        excluded_producers=("organize",),
    ),
    DependencyRule(
        name="practice_before_final_review",
        producers=("practice", "rehears"),
        consumers=FINAL_REVIEW_PHRASES,
    ),
    DependencyRule(
        name="learn_before_practice",
        producers=("learn", "study"),
        consumers=("practice", "apply", "implement"),
        excluded_consumers=("test",) + FINAL_REVIEW_PHRASES,
    ),
    DependencyRule(
        name="setup_before_rehearsal",
        producers=("set up", "setup", "tech check", ("check", "tech"), ("check", "equipment")),
        consumers=("practice", "rehears", ("mock", "interview")),
        excluded_producers=("test",),
    ),
    DependencyRule(
        name="prepare_before_rehearsal",
        producers=("prepare", "organize"),
        consumers=("practice", "rehears", ("mock", "interview")),
    ),
    DependencyRule(
        name="setup_before_learning",
        producers=("set up", "setup", "install", "configure", ("environment", "set")),
        consumers=("learn", "practice", "build", "write", "explore", "understand"),
    ),
    DependencyRule(
        name="understand_before_applying",
        producers=("understand", "learn"),
        consumers=("explore", "practice", "write", "build"),
        excluded_producers=("practice",),
        excluded_consumers=("test",),
    ),
    DependencyRule(
        name="explore_before_practice",
        producers=("explore", "understand"),
        consumers=("practice",),
        excluded_producers=("practice",),
        excluded_consumers=("test",),
    ),
    DependencyRule(
        name="variables_before_loops",
        producers=(("variable", "learn"), ("variable", "understand")),
        consumers=(
            ("loop", "learn"),
            ("loop", "understand"),
            ("function", "learn"),
            ("function", "understand"),
        ),
    ),
    DependencyRule(
        name="loops_before_functions",
        producers=(("loop", "learn"), ("loop", "understand")),
        consumers=(("function", "learn"), ("function", "understand")),
    ),
    DependencyRule(
        name="write_before_build",
        producers=("write", ("learn", "program")),
        consumers=("build", "create"),
    ),
    DependencyRule(
        name="part_one_before_part_two",
        producers=(("build", PART_ONE), ("create", PART_ONE)),
        consumers=(("build", PART_TWO), ("create", PART_TWO)),
    ),
    DependencyRule(
        name="build_before_test",
        producers=("build", "create", "code"),
        consumers=("test",),
        excluded_producers=("practice",),
    ),
    DependencyRule(
        name="test_before_final",
        producers=("test",),
        consumers=("final adjustment", ("final", "adjust")) + FINAL_REVIEW_PHRASES,
    ),
)


FORBIDDEN_EDGES: tuple[ForbiddenEdge, ...] = (
    ForbiddenEdge(
        name="learn_never_after_practice",
        dependents=("learn", "understand", "study"),
        prerequisites=("practice", "exercise", "apply"),
        excluded_dependents=("practice",),
    ),
    ForbiddenEdge(
        name="practice_never_after_final_review",
        dependents=("practice", "exercise"),
        prerequisites=("final adjustment",) + FINAL_REVIEW_PHRASES,
    ),
    ForbiddenEdge(
        name="test_never_after_drills",
        dependents=("test",),
        prerequisites=(("practice", "exercise"), ("practice", "drill"), ("practice", "challenge")),
    ),
)


TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "payment": ("payment", "billing", "invoice", "checkout", "stripe", "pricing"),
    "content": ("content", "copy", "description", "blog", "article", "newsletter"),
    "design": ("design", "logo", "mockup", "wireframe", "layout", "branding"),
    "testing": ("testing", "qa", "bug", "test case", "unit test", "regression"),
    "interview": ("interview", "resume", "cover letter"),
    "presentation": ("presentation", "slide", "speech", "pitch", "deck"),
    "marketing": ("marketing", "campaign", "seo", "social media", "advert"),
    "finance": ("budget", "finance", "tax", "expense", "savings"),
    "data": ("data", "database", "dataset", "analytics", "spreadsheet"),
    "code": ("code", "coding", "program", "python", "javascript", "api", "app"),
    "fitness": ("workout", "fitness", "gym", "cardio", "stretching"),
    "travel": ("travel", "flight", "hotel", "itinerary", "packing"),
    "event": ("event", "party", "venue", "guest", "wedding"),
    "meeting": ("meeting", "agenda"),
}

_TOPIC_PATTERNS: dict[str, re.Pattern] = {
    topic: re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")s?\b")
    for topic, keywords in TOPIC_KEYWORDS.items()
}


TASK_TYPE_PHRASES: tuple[tuple[TaskType, tuple[str, ...]], ...] = (
    (TaskType.SETUP, ("set up", "setup", "install", "configure", "environment")),
    (TaskType.LEARN, ("learn", "understand", "study", "research")),
    (TaskType.PRACTICE, ("practice", "rehears", "exercise")),
    (TaskType.BUILD, ("build", "create", "write", "develop", "implement")),
    (TaskType.TEST, ("test",)),
    (TaskType.FINAL, ("final", "review", "polish", "debug")),
)

TASK_TYPE_WORDS: frozenset[str] = frozenset(
    phrase for _, phrases in TASK_TYPE_PHRASES for phrase in phrases
)


def extract_topics(name: str, ignore: Iterable[str] = ()) -> set[str]:
    """
    Extract coarse topics from a task name.

    Args:
        name: Task name (any case)
        ignore: Action phrases removed before matching, so the verb that
            triggered a rule does not count as shared subject matter
    """
    text = name.lower()
    for phrase in sorted(ignore, key=len, reverse=True):
        text = text.replace(phrase, " ")
    return {topic for topic, pattern in _TOPIC_PATTERNS.items() if pattern.search(text)}


def topic_overlap_score(first: str, second: str, ignore: Iterable[str] = ()) -> float:
    """
    Confidence that two task names are about the same thing.

    Returns the Jaccard overlap of their topics, 0.5 when neither name has an
    identifiable topic, and 0.0 when only one side has a topic.
    """
    ignore = tuple(ignore)
    first_topics = extract_topics(first, ignore)
    second_topics = extract_topics(second, ignore)
    if not first_topics and not second_topics:
        return 0.5
    if not first_topics or not second_topics:
        return 0.0
    return len(first_topics & second_topics) / len(first_topics | second_topics)


def classify_task_type(name: str) -> TaskType:
    lower = name.lower()
    for task_type, phrases in TASK_TYPE_PHRASES:
        if any(phrase in lower for phrase in phrases):
            return task_type
    return TaskType.UNKNOWN


def score_dependency_edge(dependent: SchedulableTask, prerequisite: SchedulableTask) -> float:
    """
    Default strength of the edge ``dependent -> prerequisite``.

    Lower scores are removed first when breaking a cycle. An edge that runs
    backwards through the task-type hierarchy, lacks topical overlap, or
    contradicts ``idx`` order scores lowest.
    """
    dependent_type = classify_task_type(dependent.name)
    prerequisite_type = classify_task_type(prerequisite.name)

    if dependent_type == TaskType.PRACTICE and prerequisite_type == TaskType.LEARN:
        score = 1000.0
    elif dependent_type == TaskType.LEARN and prerequisite_type == TaskType.PRACTICE:
        score = -1000.0
    else:
        score = float(dependent_type - prerequisite_type)

    score += topic_overlap_score(dependent.name, prerequisite.name, ignore=TASK_TYPE_WORDS)

    if dependent.idx is not None and prerequisite.idx is not None:
        if dependent.idx > prerequisite.idx:
            score += 0.5
        elif dependent.idx < prerequisite.idx:
            score -= 0.5
    return score

"""Keyword/regex task categorisation used to anchor task breakdowns."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from src.extraction.models import Priority

# Longer inputs are free-form content, not a task title
MAX_ANALYSED_LENGTH = 1000

# Categories below this completion rate get a warning in breakdown responses
LOW_COMPLETION_THRESHOLD = 70


@dataclass(frozen=True)
class SuggestedSubtask:
    text: str
    estimated_minutes: int


@dataclass(frozen=True)
class CategoryPattern:
    """Recognition rules and canned subtasks for one task category."""

    category: str
    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]
    default_priority: Priority
    subtasks: tuple[SuggestedSubtask, ...]
    tips: str | None = None
    completion_rate: int = 50

    @property
    def max_score(self) -> int:
        return len(self.keywords) + 2 * len(self.patterns)


@dataclass
class PatternMatch:
    """Best category for a piece of task text."""

    category: str
    confidence: float  # 0-1
    suggested_priority: Priority
    suggested_subtasks: list[SuggestedSubtask] = field(default_factory=list)
    tips: str | None = None
    completion_warning: str | None = None


def _rx(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _steps(*pairs: tuple[str, int]) -> tuple[SuggestedSubtask, ...]:
    return tuple(SuggestedSubtask(text, minutes) for text, minutes in pairs)


TASK_PATTERNS: tuple[CategoryPattern, ...] = (
    CategoryPattern(
        category="research",
        keywords=("literature review", "data collection", "experiment", "study", "hypothesis",
                  "methodology", "research", "pilot", "participant", "sample", "protocol"),
        patterns=_rx(r"literature\s*review", r"data\s*collection", r"run\s*(experiment|study)",
                     r"pilot\s*(study|test)", r"recruit\s*participants",
                     r"research\s*(design|method|protocol)", r"hypothesis"),
        default_priority=Priority.MEDIUM,
        subtasks=_steps(("Define research questions and objectives", 30),
                        ("Search databases for relevant sources", 60),
                        ("Review and annotate key materials", 90),
                        ("Document findings and gaps", 45)),
        tips="Break large research tasks into weekly milestones to track progress effectively.",
        completion_rate=60,
    ),
    CategoryPattern(
        category="writing",
        keywords=("draft", "paper", "manuscript", "proposal", "abstract", "write",
                  "introduction", "conclusion", "blog post", "newsletter"),
        patterns=_rx(r"write\s*(a\s*)?(draft|paper|manuscript|proposal|abstract|post)",
                     r"(draft|revise)\s*(the\s*)?(introduction|conclusion|summary)",
                     r"manuscript\s*(draft|revision)", r"proposal\s*(draft|section)"),
        default_priority=Priority.HIGH,
        subtasks=_steps(("Create outline and structure", 30),
                        ("Write first draft", 120),
                        ("Add references and supporting data", 45),
                        ("Revise and edit", 60)),
        tips="Block focused time for writing; short sessions help keep momentum.",
        completion_rate=65,
    ),
    CategoryPattern(
        category="analysis",
        keywords=("statistics", "data analysis", "spreadsheet", "python", "excel", "analysis",
                  "regression", "visualization", "chart", "figure", "table", "forecast"),
        patterns=_rx(r"data\s*analysis", r"run\s*(statistics|regression|forecast)",
                     r"(analyze|analyse|process)\s*(the\s*)?(data|results|numbers)",
                     r"create\s*(visualization|chart|figure|table)",
                     r"\b(excel|python|sql)\s*(sheet|script|query|analysis)"),
        default_priority=Priority.MEDIUM,
        subtasks=_steps(("Clean and prepare data", 45),
                        ("Run the analysis", 60),
                        ("Create charts and tables", 45),
                        ("Document results and interpretations", 30)),
        tips="Keep a short log of each analysis step so results can be reproduced.",
        completion_rate=72,
    ),
    CategoryPattern(
        category="submission",
        keywords=("submit", "deadline", "filing", "bid", "tender", "submission",
                  "application", "cover letter", "due"),
        patterns=_rx(r"submit\s*(to|the|a|by|before)", r"(bid|tender|grant)\s*(submission|deadline)",
                     r"deadline", r"(tax|annual)\s*filing", r"(prepare|upload)\s*supporting"),
        default_priority=Priority.URGENT,
        subtasks=_steps(("Review submission requirements", 20),
                        ("Prepare documents in the required format", 60),
                        ("Gather supporting materials", 45),
                        ("Complete the form and upload", 30),
                        ("Confirm receipt", 5)),
        tips="Submit at least 2 hours before the deadline to avoid technical issues.",
        completion_rate=90,
    ),
    CategoryPattern(
        category="meeting",
        keywords=("client meeting", "meeting", "call", "check-in", "one-on-one", "standup",
                  "appointment", "review meeting", "supplier", "vendor"),
        patterns=_rx(r"meet(ing)?\s*(with\s*)?(client|customer|supplier|vendor|team|manager)",
                     r"(client|team|staff|board)\s*meeting", r"one[\s-]on[\s-]one",
                     r"(schedule|book)\s*(a\s*)?(call|meeting|appointment)", r"check[\s-]in"),
        default_priority=Priority.HIGH,
        subtasks=_steps(("Prepare agenda and talking points", 20),
                        ("Review previous meeting notes", 10),
                        ("Prepare status update and materials", 30),
                        ("Document action items after meeting", 15)),
        tips="Send the agenda to attendees at least 24 hours before the meeting.",
        completion_rate=95,
    ),
    CategoryPattern(
        category="presentation",
        keywords=("presentation", "pitch", "slides", "demo", "talk", "deck", "webinar",
                  "powerpoint", "present"),
        patterns=_rx(r"prepare\s*(a\s*)?(presentation|slides|talk|pitch|demo|deck)",
                     r"(sales|investor)\s*pitch", r"(client|product)\s*demo",
                     r"practice\s*(presentation|talk|pitch)"),
        default_priority=Priority.HIGH,
        subtasks=_steps(("Create slide deck", 90),
                        ("Prepare speaker notes", 30),
                        ("Rehearse the presentation", 45),
                        ("Get feedback and revise", 30)),
        tips="Rehearse at least three times before delivery.",
        completion_rate=85,
    ),
    CategoryPattern(
        category="reading",
        keywords=("article", "report", "contract", "read", "reading", "skim", "annotate",
                  "terms", "policy document"),
        patterns=_rx(r"read\s*(the\s*)?(article|report|contract|chapter|policy)",
                     r"(review|skim)\s*(the\s*)?(article|contract|terms)",
                     r"annotate\s*(the\s*)?(report|contract)",
                     r"summari[sz]e\s*(the\s*)?(report|article|contract)"),
        default_priority=Priority.MEDIUM,
        subtasks=_steps(("Skim for main points", 15),
                        ("Read in detail and take notes", 45),
                        ("Identify key terms and takeaways", 15),
                        ("Write a short summary", 20)),
        tips="Skim first, then read in detail, then note open questions.",
        completion_rate=75,
    ),
    CategoryPattern(
        category="coursework",
        keywords=("training", "course", "certification", "exam", "quiz", "module",
                  "onboarding", "workshop", "class"),
        patterns=_rx(r"complete\s*(the\s*)?(training|course|module|certification)",
                     r"(study|prepare)\s*(for\s*)?(the\s*)?(exam|certification|quiz)",
                     r"onboarding\s*(module|training)", r"(attend|register\s*for)\s*(a\s*)?workshop"),
        default_priority=Priority.HIGH,
        subtasks=_steps(("Review course requirements", 10),
                        ("Gather materials", 15),
                        ("Complete the main coursework", 90),
                        ("Review answers", 20),
                        ("Submit before the deadline", 5)),
        tips="Start early to leave time for questions and retakes.",
        completion_rate=88,
    ),
    CategoryPattern(
        category="revision",
        keywords=("revise", "edits", "feedback", "comments", "revision", "resubmit",
                  "corrections", "changes requested"),
        patterns=_rx(r"address\s*(client\s*|reviewer\s*)?comments",
                     r"revise\s*(the\s*)?(proposal|contract|draft|quote|document)",
                     r"respond\s*to\s*(the\s*)?(feedback|comments)",
                     r"make\s*(the\s*)?(edits|corrections|revisions|changes)", r"resubmit"),
        default_priority=Priority.HIGH,
        subtasks=_steps(("Read all feedback thoroughly", 30),
                        ("List requested changes", 20),
                        ("Make the revisions", 120),
                        ("Write a summary of changes", 30),
                        ("Review changes and send back", 30)),
        tips="Work through each comment in order and record how it was addressed.",
        completion_rate=78,
    ),
    CategoryPattern(
        category="admin",
        keywords=("form", "forms", "invoice", "payroll", "paperwork", "reimbursement",
                  "expense", "renewal", "license", "insurance", "administrative"),
        patterns=_rx(r"complete\s*(the\s*)?(form|application|paperwork)",
                     r"(send|pay|chase)\s*(the\s*)?invoices?", r"(travel|expense)\s*reimbursement",
                     r"(license|insurance|policy)\s*renewal", r"run\s*payroll"),
        default_priority=Priority.MEDIUM,
        subtasks=_steps(("Gather required documents and information", 20),
                        ("Complete all form sections", 30),
                        ("Get necessary signatures or approvals", 15),
                        ("Submit and confirm receipt", 10)),
        tips="Keep copies of all submitted forms and confirmation numbers.",
        completion_rate=80,
    ),
)


def completion_warning(pattern: CategoryPattern) -> str | None:
    """Warning text for categories that historically stall."""
    if pattern.completion_rate < LOW_COMPLETION_THRESHOLD:
        return (
            f"This task type has a {pattern.completion_rate}% historical completion rate. "
            "Consider breaking it into smaller steps with deadlines."
        )
    return None


def analyze_task_pattern(task_text: str) -> PatternMatch | None:
    """Score ``task_text`` against every category and return the best match.

    Each keyword found scores 1, each regex hit scores 2. Ties keep the
    earlier category. Returns None when nothing matches or the text is empty
    or longer than MAX_ANALYSED_LENGTH.
    """
    if not task_text or len(task_text) > MAX_ANALYSED_LENGTH:
        return None

    lowered = task_text.lower()
    best: CategoryPattern | None = None
    best_score = 0

    for pattern in TASK_PATTERNS:
        score = sum(1 for kw in pattern.keywords if kw.lower() in lowered)
        score += sum(2 for rx in pattern.patterns if rx.search(task_text))
        if score > best_score:
            best, best_score = pattern, score

    if best is None:
        return None

    return PatternMatch(
        category=best.category,
        confidence=min(best_score / best.max_score, 1.0),
        suggested_priority=best.default_priority,
        suggested_subtasks=list(best.subtasks),
        tips=best.tips,
        completion_warning=completion_warning(best),
    )


def describe_all_patterns() -> str:
    """Render every category and its canned subtasks for prompt context."""
    blocks: list[str] = []
    for pattern in TASK_PATTERNS:
        steps = "\n".join(f"  - {s.text} (~{s.estimated_minutes} min)" for s in pattern.subtasks)
        blocks.append(f"{pattern.category.upper()} ({pattern.default_priority.value} priority):\n{steps}")
    return "\n\n".join(blocks)

"""Prompt templates for each extraction mode.

Every template asks Claude for a single bare JSON object and anchors the
format with worked examples. ``build_prompt`` is pure: the same inputs always
produce the same prompt.
"""

from __future__ import annotations

from src.extraction.models import ExtractionContext, ExtractionMode
from src.extraction.patterns import analyze_task_pattern, describe_all_patterns

NO_USERS_PLACEHOLDER = "no team members registered"

_BREAKDOWN_TEMPLATE = """\
You are a task breakdown assistant for a small business team. Take a task and break it down into actionable subtasks.

Main task: "{text}"
{category_hint}
Team members: {users}
Today's date: {today}

Common task types and their typical subtasks:

{pattern_catalog}

Analyze the task and break it down into 2-6 specific, actionable subtasks. Each subtask should be:
- A single, concrete action
- Completable in one sitting
- Starting with an action verb

Respond ONLY with valid JSON (no markdown, no code blocks):
{{
  "subtasks": [
    {{
      "text": "Clear, specific action starting with a verb",
      "priority": "low, medium, high, or urgent",
      "estimatedMinutes": estimated time in minutes (5, 10, 15, 30, 60, etc.)
    }}
  ],
  "summary": "Brief 1-sentence summary of what completing these subtasks accomplishes",
  "category": "detected category name or null"
}}

Rules:
- Create 2-6 subtasks depending on task complexity
- Simple tasks might only need 2-3 subtasks
- Each subtask should be independently completable
- Order subtasks logically (dependencies first)
- Inherit urgency from the main task context
- Keep subtask text under 80 characters
- Don't add unnecessary steps - focus on essential actions

Example:

Task: "Prepare client proposal for the Henderson account"
{{
  "subtasks": [
    {{ "text": "Review Henderson requirements and past correspondence", "priority": "high", "estimatedMinutes": 30 }},
    {{ "text": "Draft scope, timeline and pricing sections", "priority": "high", "estimatedMinutes": 90 }},
    {{ "text": "Get internal sign-off on pricing", "priority": "medium", "estimatedMinutes": 15 }},
    {{ "text": "Send proposal and schedule follow-up call", "priority": "medium", "estimatedMinutes": 10 }}
  ],
  "summary": "Henderson proposal drafted, approved and delivered",
  "category": "writing"
}}

Respond with ONLY the JSON object, no other text."""

_TASKS_TEMPLATE = """\
You are a task extraction assistant. Analyze this voicemail transcription and extract ALL distinct action items or tasks mentioned.

Voicemail transcription:
"{text}"

Available team members: {users}
Today's date: {today}

For each task found, provide:
1. A clear, actionable task description (clean up the language, make it professional)
2. Priority level (low, medium, high, urgent) - infer from context and urgency words
3. Due date if mentioned (YYYY-MM-DD format) - interpret phrases like "by Friday", "next week", "tomorrow", "end of month"
4. Suggested assignee from the team list if mentioned or implied

IMPORTANT: Extract ALL separate tasks. A single voicemail might contain multiple unrelated action items.

Respond ONLY with valid JSON in this exact format:
{{
  "tasks": [
    {{
      "text": "Task description here",
      "priority": "medium",
      "dueDate": "2024-01-15",
      "assignedTo": "Person Name"
    }}
  ]
}}

Example:

Voicemail: "Hi, it's Dana from Lakeside. Can someone call me back Tuesday about the invoice? Also the delivery needs to be rescheduled, it's urgent."
{{
  "tasks": [
    {{ "text": "Call Dana at Lakeside about the invoice", "priority": "medium", "dueDate": "", "assignedTo": "" }},
    {{ "text": "Reschedule the Lakeside delivery", "priority": "urgent", "dueDate": "", "assignedTo": "" }}
  ]
}}

If the transcription doesn't contain any clear tasks, still return one task with the cleaned-up text.
Leave dueDate as empty string "" if no date is mentioned.
Leave assignedTo as empty string "" if no person is mentioned."""

_CONTENT_SUBTASKS_TEMPLATE = """\
You are a task extraction assistant. Analyze this {label} and extract ALL distinct action items as subtasks for a parent task.
{parent_line}
{label_title} content:
\"\"\"
{text}
\"\"\"

Today's date: {today}

Extract actionable items from this content as subtasks. Look for:
- Explicit requests or instructions
- Questions that need answers (turn into "Respond to..." tasks)
- Deadlines or follow-ups mentioned
- Items to review, send, call, schedule, prepare, etc.
- Any commitments or promises made

For each subtask provide:
1. A clear, actionable description (start with action verb: Review, Call, Send, Schedule, Prepare, Follow up, etc.)
2. Priority (low, medium, high, urgent) - infer from language urgency
3. Estimated minutes to complete (5, 10, 15, 30, 45, 60, 90, 120)

Respond ONLY with valid JSON (no markdown, no code blocks):
{{
  "subtasks": [
    {{
      "text": "Action item description",
      "priority": "medium",
      "estimatedMinutes": 15
    }}
  ],
  "summary": "Brief summary of what this content is about"
}}

Example:

Content: "Please send the signed lease by Friday and let me know if the parking spaces are included."
{{
  "subtasks": [
    {{ "text": "Send the signed lease", "priority": "high", "estimatedMinutes": 15 }},
    {{ "text": "Respond about whether parking spaces are included", "priority": "medium", "estimatedMinutes": 10 }}
  ],
  "summary": "Landlord needs the signed lease and an answer on parking"
}}

Rules:
- Extract 2-10 subtasks depending on content complexity
- Each subtask should be independently completable
- Keep subtask text under 100 characters
- Order by logical sequence or priority
- If the content mentions specific deadlines, note urgency in priority
- Don't create redundant or overly granular subtasks
- If content is conversational, focus on action items, not statements

Respond with ONLY the JSON object."""

_AUDIO_SUBTASKS_TEMPLATE = """\
Analyze this audio transcription and extract ALL distinct action items as subtasks.

TRANSCRIPTION:
"{text}"
{parent_line}
Today's date: {today}

Extract actionable items from this transcription as subtasks. Look for:
- Explicit requests or instructions
- Questions that need answers (turn into "Respond to..." tasks)
- Deadlines or follow-ups mentioned
- Items to review, send, call, schedule, prepare, etc.
- Any commitments or promises made

For each subtask provide:
1. A clear, actionable description (start with action verb: Review, Call, Send, Schedule, Prepare, Follow up, etc.)
2. Priority (low, medium, high, urgent) - infer from language urgency
3. Estimated minutes to complete (5, 10, 15, 30, 45, 60, 90, 120)

Respond ONLY with valid JSON in this exact format:
{{
  "subtasks": [
    {{
      "text": "Action item description",
      "priority": "medium",
      "estimatedMinutes": 15
    }}
  ],
  "summary": "Brief summary of what this audio is about"
}}

Example:

Transcription: "Remind me to order more receipt paper and ask Sam to check the front door lock."
{{
  "subtasks": [
    {{ "text": "Order more receipt paper", "priority": "medium", "estimatedMinutes": 10 }},
    {{ "text": "Ask Sam to check the front door lock", "priority": "medium", "estimatedMinutes": 5 }}
  ],
  "summary": "Supply reorder and a maintenance check"
}}

Rules:
- Extract 2-10 subtasks depending on content complexity
- Each subtask should be independently completable
- Keep subtask text under 100 characters
- Order by logical sequence or priority
- If content mentions specific deadlines, note urgency in priority
- Don't create redundant or overly granular subtasks"""


_ENHANCE_TEMPLATE = """\
You are a task enhancement assistant for a small business team. Take the user's task input and improve it.

User's task input: "{text}"

Today's date: {today} ({weekday})
Team members: {users}

Analyze the input and respond ONLY with valid JSON (no markdown, no code blocks):
{{
  "text": "A clear, concise, action-oriented task description starting with a verb. Fix spelling and grammar.",
  "priority": "low, medium, high, or urgent - based on urgency words in the input",
  "dueDate": "YYYY-MM-DD if a deadline is mentioned or implied, otherwise empty string",
  "assignedTo": "Name of team member if mentioned, otherwise empty string",
  "wasEnhanced": true or false - whether any meaningful changes were made
}}

Rules:
- PRESERVE the original intent - don't add tasks the user didn't mention
- If the input is already clear and specific, keep it mostly as-is and set wasEnhanced to false
- Parse relative dates: "tomorrow", "next week", "by Friday", "end of month", "in 3 days"
- "ASAP", "urgent", "immediately", "critical", "deadline today" mean urgent priority
- "important", "soon", "client waiting" mean high priority
- If no urgency is mentioned, default to medium priority
- Only suggest an assignee if a team member name is explicitly mentioned
- Keep tasks under 100 characters when possible

Examples:
- "email landlord tmrw about lease" -> {{ "text": "Email landlord about the lease", "priority": "medium", "dueDate": "2024-01-16", "assignedTo": "", "wasEnhanced": true }}
- "ASAP fix the card reader" -> {{ "text": "Fix the card reader", "priority": "urgent", "dueDate": "", "assignedTo": "", "wasEnhanced": true }}
- "Submit quarterly sales tax return" -> {{ "text": "Submit quarterly sales tax return", "priority": "high", "dueDate": "", "assignedTo": "", "wasEnhanced": false }}

Respond with ONLY the JSON object, no other text."""

_EMAIL_TEMPLATE = """\
You are a task extraction assistant for a small business. Analyze this email and extract a clear, actionable task.

Email Subject: {subject}
Email Body: {body}
From: {sender}
Received: {received}

Extract the following information and respond ONLY with valid JSON (no markdown, no code blocks):
{{
  "text": "A clear, concise task description (action-oriented, start with a verb like Review, Send, Call, Schedule)",
  "suggestedAssignee": "Name of the person who should do this task if mentioned, or empty string",
  "priority": "low, medium, high, or urgent based on urgency indicators in the email",
  "dueDate": "YYYY-MM-DD if a deadline is mentioned, or empty string",
  "context": "Brief note about the email source (e.g. 'Email from John Smith regarding Q4 budget')"
}}

Rules:
- Task text should be clear, actionable, and start with a verb
- Look for names mentioned as assignees ("have Sam do...", "ask Dana to...")
- If ASAP, urgent, or immediately is mentioned, set priority to "urgent"
- Parse relative dates like "by Friday" against today's date ({today})
- Keep the context under 50 words

Respond with ONLY the JSON object, no other text."""


def format_users(known_users: list[str]) -> str:
    """Comma-join team member names, or a placeholder when there are none."""
    names = [u.strip() for u in known_users if isinstance(u, str) and u.strip()]
    return ", ".join(names) if names else NO_USERS_PLACEHOLDER


def content_label(label: str | None) -> str:
    if label == "email":
        return "email"
    if label == "voicemail":
        return "voicemail transcription"
    return "message"


def _parent_line(parent_task_text: str | None) -> str:
    if not parent_task_text:
        return ""
    return f'\nParent task context: "{parent_task_text}"\n'


def _category_hint(text: str) -> str:
    match = analyze_task_pattern(text)
    if match is None:
        return ""
    steps = "\n".join(
        f"- {s.text} (~{s.estimated_minutes} min)" for s in match.suggested_subtasks
    )
    hint = (
        f"\nDetected task category: {match.category.upper()} "
        f"({round(match.confidence * 100)}% confidence)\n"
        f"Suggested subtasks for this category:\n{steps}\n"
    )
    if match.tips:
        hint += f"\nTip: {match.tips}\n"
    return hint


def build_prompt(
    canonical_text: str,
    mode: ExtractionMode,
    context: ExtractionContext,
) -> str:
    """Build the instruction payload for one extraction call.

    Args:
        canonical_text: Normalized input text (typed, pasted, or transcribed).
        mode: Extraction mode selecting the template.
        context: Team members, current date, parent task, and content label.

    Returns:
        The prompt string.

    Raises:
        ValueError: ``mode`` has no prompt (transcription only).
    """
    today = context.today.isoformat()

    if mode is ExtractionMode.BREAKDOWN:
        return _BREAKDOWN_TEMPLATE.format(
            text=canonical_text,
            category_hint=_category_hint(canonical_text),
            users=format_users(context.known_users),
            today=today,
            pattern_catalog=describe_all_patterns(),
        )

    if mode in (ExtractionMode.VOICEMAIL_TASKS, ExtractionMode.AUDIO_TASKS):
        return _TASKS_TEMPLATE.format(
            text=canonical_text,
            users=format_users(context.known_users),
            today=today,
        )

    if mode is ExtractionMode.CONTENT_SUBTASKS:
        label = content_label(context.content_label)
        return _CONTENT_SUBTASKS_TEMPLATE.format(
            label=label,
            label_title=label[:1].upper() + label[1:],
            parent_line=_parent_line(context.parent_task_text),
            text=canonical_text,
            today=today,
        )

    if mode is ExtractionMode.AUDIO_SUBTASKS:
        return _AUDIO_SUBTASKS_TEMPLATE.format(
            text=canonical_text,
            parent_line=_parent_line(context.parent_task_text),
            today=today,
        )

    if mode is ExtractionMode.ENHANCE_TASK:
        return _ENHANCE_TEMPLATE.format(
            text=canonical_text,
            today=today,
            weekday=context.today.strftime("%A"),
            users=format_users(context.known_users),
        )

    if mode is ExtractionMode.EMAIL_TASK:
        return _EMAIL_TEMPLATE.format(
            subject=context.email_subject or "(no subject)",
            body=context.email_body or ("(no body)" if context.email_subject else canonical_text),
            sender=context.sender or "unknown",
            received=context.received_date or "unknown",
            today=today,
        )

    raise ValueError(f"No prompt template for mode {mode.value!r}")

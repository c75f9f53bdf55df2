"""Prompt templates for the map-reduce summarizer."""

# Map phase: one call per file chunk
MAP_PROMPT = """Summarize the following source file concisely.
List the file path, main types/functions/classes, dependencies and important logic as bullet points.
Keep the answer under 500 characters.

--- File: {file_path} ---
{content}
--- End ---"""

# Reduce phase: merges per-file summaries (or earlier reduce outputs)
REDUCE_PROMPT = """Below are individual summaries of several source files.
Combine them into a project overview report that covers:
- Architecture overview
- Main modules and their responsibilities
- Data flow and dependencies
- Tech stack and design patterns

{summaries}"""


def render_map_prompt(file_label: str, content: str) -> str:
    return MAP_PROMPT.format(file_path=file_label, content=content)


def render_reduce_prompt(sections: list[str]) -> str:
    return REDUCE_PROMPT.format(summaries="\n\n".join(sections))

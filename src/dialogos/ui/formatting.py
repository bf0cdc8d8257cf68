"""Text formatting utilities for the TUI.

Hides the details of markdown rendering and text cleanup. Transcript
bodies carry HTML ``<details>`` blocks for tool activity, which terminal
Markdown renderers do not understand; they are rewritten here.
"""

import re

from rich.markdown import Markdown

from .config import MAX_TOOL_RESULT_LENGTH

_DETAILS_BLOCK = re.compile(
    r"<details[^>]*>\s*<summary>(?P<summary>.*?)</summary>\s*(?P<body>.*?)\s*</details>\s*",
    re.DOTALL,
)
_STRONG = re.compile(r"<strong>(.*?)</strong>", re.DOTALL)
_FENCED = re.compile(r"^```(?P<lang>[\w-]*)\n(?P<code>.*)\n```$", re.DOTALL)


def clean_latex(text: str) -> str:
    """Convert LaTeX notation to plain text equivalents.

    Handles common LaTeX patterns that Rich cannot render:
    - \\( ... \\) inline math -> just the content
    - \\[ ... \\] display math -> just the content
    - $$...$$ display math -> just the content
    """
    # Remove \( ... \) inline math delimiters
    text = re.sub(r'\\\(\s*', '', text)
    text = re.sub(r'\s*\\\)', '', text)

    # Remove \[ ... \] display math delimiters
    text = re.sub(r'\\\[\s*', '', text)
    text = re.sub(r'\s*\\\]', '', text)

    # Remove $$ ... $$ display math delimiters
    text = re.sub(r'\$\$\s*', '', text)

    # Clean up common LaTeX commands
    text = re.sub(r'\\frac\{([^}]*)\}\{([^}]*)\}', r'(\1)/(\2)', text)
    text = re.sub(r'\\sqrt\{([^}]*)\}', r'sqrt(\1)', text)
    text = re.sub(r'\\times', 'x', text)
    text = re.sub(r'\\cdot', '*', text)
    text = re.sub(r'\\leq', '<=', text)
    text = re.sub(r'\\geq', '>=', text)
    text = re.sub(r'\\neq', '!=', text)
    text = re.sub(r'\\approx', '~=', text)
    text = re.sub(r'\\text\{([^}]*)\}', r'\1', text)
    text = re.sub(r'\\\$', '$', text)

    return text


def truncate(text: str, limit: int = MAX_TOOL_RESULT_LENGTH) -> str:
    """Shorten ``text`` to ``limit`` characters, noting what was cut."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}\n... ({len(text) - limit:,} more characters)"


def _details_to_markdown(match: re.Match[str]) -> str:
    summary = _STRONG.sub(r"**\1**", match.group("summary")).strip()
    body = match.group("body").strip()
    fenced = _FENCED.match(body)
    if fenced:
        body = f"```{fenced.group('lang')}\n{truncate(fenced.group('code'))}\n```"
    return f"{summary}\n\n{body}\n\n"


def to_terminal_markdown(body: str) -> str:
    """Rewrite a transcript body for terminal Markdown renderers.

    ``<details>`` blocks become a bold title followed by their content,
    long fenced tool output is truncated and LaTeX is cleaned up.
    """
    text = _DETAILS_BLOCK.sub(_details_to_markdown, body)
    text = _STRONG.sub(r"**\1**", text)
    return clean_latex(text)


def render_markdown(text: str) -> Markdown:
    """Render a transcript body as a Rich Markdown renderable."""
    return Markdown(to_terminal_markdown(text))

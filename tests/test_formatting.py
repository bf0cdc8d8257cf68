"""Unit tests for terminal formatting of transcript bodies."""
from rich.markdown import Markdown

from dialogos.chat import ChronologicalAggregator
from dialogos.history import ToolCall, ToolEntry
from dialogos.ui.formatting import clean_latex, render_markdown, to_terminal_markdown, truncate


class TestToTerminalMarkdown:
    """Tests for rewriting details blocks."""

    def test_tool_blocks_become_titles(self):
        """Test that HTML blocks turn into bold titles and fences."""
        aggregator = ChronologicalAggregator(clock=lambda: 0.0)
        aggregator.add_tool_call(ToolCall(name="read_file", arguments={"file_path": "a"}))
        aggregator.add_tool_result(ToolEntry(name="read_file", content="body text"))

        text = to_terminal_markdown(aggregator.render())

        assert "<details" not in text
        assert "<summary>" not in text
        assert "🔧 **Using tool: read_file**" in text
        assert "📋 **read_file**" in text
        assert "```\nbody text\n```" in text

    def test_long_results_are_truncated(self):
        """Test that oversized fenced output is shortened."""
        body = (
            '<details class="tool-result">\n<summary>📋 <strong>x</strong></summary>\n\n'
            f"```\n{'a' * 5000}\n```\n</details>\n\n"
        )

        text = to_terminal_markdown(body)

        assert "more characters" in text
        assert len(text) < 5000

    def test_plain_text_unchanged(self):
        """Test that ordinary Markdown passes through."""
        assert to_terminal_markdown("**bold** and `code`") == "**bold** and `code`"

    def test_render_markdown(self):
        """Test the Rich renderable."""
        assert isinstance(render_markdown("# Title"), Markdown)


class TestHelpers:
    """Tests for text helpers."""

    def test_truncate(self):
        """Test the truncation notice."""
        assert truncate("short", 10) == "short"
        assert truncate("abcdef", 3) == "abc\n... (3 more characters)"

    def test_clean_latex(self):
        """Test LaTeX cleanup."""
        assert clean_latex(r"\(x \times y\)") == "x x y"
        assert clean_latex(r"\frac{a}{b}") == "(a)/(b)"

"""Workspace file tools.

Every path argument is resolved against the workspace root and rejected
when it escapes it.
"""

import shutil
from pathlib import Path
from typing import Any

from ..errors import ToolExecutionError
from ..history import ToolCall, ToolEntry
from .base import BaseTool

MAX_LISTED_FILES = 200


class WorkspaceTool(BaseTool):
    """Base class for tools confined to a workspace directory."""

    def __init__(self, base_path: Path | None = None):
        """Initialize the tool.

        Args:
            base_path: Workspace root (default: current directory)
        """
        super().__init__()
        self._base_path = (base_path or Path.cwd()).resolve()

    @property
    def base_path(self) -> Path:
        return self._base_path

    def resolve(self, raw: str) -> Path:
        """Resolve a user supplied path inside the workspace.

        Raises:
            ToolExecutionError: If the path points outside the workspace
        """
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self._base_path / path
        path = path.resolve()
        if path != self._base_path and self._base_path not in path.parents:
            raise ToolExecutionError(self.name, f"Path is outside the workspace: {raw}")
        return path

    def relative(self, path: Path) -> str:
        return path.relative_to(self._base_path).as_posix() or "."


class ListFilesTool(WorkspaceTool):
    """List the entries of a workspace directory."""

    @property
    def name(self) -> str:
        return "list_files"

    @property
    def description(self) -> str:
        return (
            "List files and directories in the workspace. "
            "Use this to discover which files exist before reading them."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Directory to list, relative to the workspace (default: '.')",
                    "default": "."
                },
                "pattern": {
                    "type": "string",
                    "description": "Optional glob pattern, e.g. '*.py' or '**/*.md'",
                    "default": "*"
                }
            },
            "required": []
        }

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        directory = self.resolve(tool_call.arguments.get("path") or ".")
        pattern = tool_call.arguments.get("pattern") or "*"

        if not directory.is_dir():
            return self.failure(tool_call, f"Not a directory: {self.relative(directory)}")

        self._debug("info", "Tools", f"Listing {self.relative(directory)} ({pattern})")
        matches = sorted(directory.glob(pattern))
        entries = [
            {
                "path": self.relative(path),
                "type": "directory" if path.is_dir() else "file",
            }
            for path in matches[:MAX_LISTED_FILES]
        ]
        return self.result(
            tool_call,
            result=entries,
            truncated=len(matches) > MAX_LISTED_FILES,
        )


class ReadFileTool(WorkspaceTool):
    """Read a text file from the workspace."""

    @property
    def name(self) -> str:
        return "read_file"

    @property
    def description(self) -> str:
        return (
            "Read the contents of a file. "
            "Use this when you need to examine the full contents of a specific file."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path to the file to read"
                },
                "start_line": {
                    "type": "integer",
                    "description": "Optional: Starting line number (1-indexed)",
                    "default": 1
                },
                "end_line": {
                    "type": "integer",
                    "description": "Optional: Ending line number",
                    "default": -1
                }
            },
            "required": ["file_path"]
        }

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        file_path = tool_call.arguments.get("file_path", "")
        if not file_path:
            return self.failure(tool_call, "file_path parameter is required")

        path = self.resolve(file_path)
        if not path.is_file():
            return self.failure(tool_call, f"File not found: {file_path}")

        with open(path, encoding="utf-8") as f:
            lines = f.readlines()

        start_line = max(int(tool_call.arguments.get("start_line", 1)), 1)
        end_line = int(tool_call.arguments.get("end_line", -1))
        if end_line == -1:
            end_line = len(lines)

        self._debug("info", "Tools", f"Reading {file_path} lines {start_line}-{end_line}")
        return self.result(
            tool_call,
            result="".join(lines[start_line - 1:end_line]),
            lines=f"{start_line}-{end_line}",
        )


class WriteFileTool(WorkspaceTool):
    """Create or overwrite a text file in the workspace."""

    @property
    def name(self) -> str:
        return "write_file"

    @property
    def description(self) -> str:
        return (
            "Write text content to a file, creating parent directories as needed. "
            "Existing files are overwritten."
        )

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path to the file to write"
                },
                "content": {
                    "type": "string",
                    "description": "Content to write to the file"
                }
            },
            "required": ["file_path", "content"]
        }

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        file_path = tool_call.arguments.get("file_path", "")
        if not file_path:
            return self.failure(tool_call, "file_path parameter is required")
        content = str(tool_call.arguments.get("content", ""))

        path = self.resolve(file_path)
        if path.is_dir():
            return self.failure(tool_call, f"Is a directory: {file_path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        self._debug("info", "Tools", f"Wrote {len(content)} chars to {file_path}")
        return self.result(tool_call, result=f"Wrote {len(content)} characters")


class DeleteFileTool(WorkspaceTool):
    """Delete a file from the workspace."""

    @property
    def name(self) -> str:
        return "delete_file"

    @property
    def description(self) -> str:
        return "Delete a file. Directories are not removed."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path to the file to delete"
                }
            },
            "required": ["file_path"]
        }

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        file_path = tool_call.arguments.get("file_path", "")
        if not file_path:
            return self.failure(tool_call, "file_path parameter is required")

        path = self.resolve(file_path)
        if not path.is_file():
            return self.failure(tool_call, f"File not found: {file_path}")
        path.unlink()

        self._debug("info", "Tools", f"Deleted {file_path}")
        return self.result(tool_call, result=f"Deleted {self.relative(path)}")


class _TransferTool(WorkspaceTool):
    """Shared argument handling for tools that move data between two paths."""

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "source_path": {
                    "type": "string",
                    "description": "Path of the existing file"
                },
                "destination_path": {
                    "type": "string",
                    "description": "Target path; must not exist yet"
                }
            },
            "required": ["source_path", "destination_path"]
        }

    def _paths(self, tool_call: ToolCall) -> tuple[Path, Path] | str:
        """Resolve both paths, or return the reason they are unusable."""
        source_path = tool_call.arguments.get("source_path", "")
        destination_path = tool_call.arguments.get("destination_path", "")
        if not source_path or not destination_path:
            return "source_path and destination_path parameters are required"

        source = self.resolve(source_path)
        destination = self.resolve(destination_path)
        if not source.is_file():
            return f"File not found: {source_path}"
        if destination.exists():
            return f"Destination already exists: {destination_path}"
        return source, destination


class RenameFileTool(_TransferTool):
    """Rename or move a file inside the workspace."""

    @property
    def name(self) -> str:
        return "rename_file"

    @property
    def description(self) -> str:
        return (
            "Rename or move a file. "
            "Parent directories of the destination are created as needed."
        )

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        paths = self._paths(tool_call)
        if isinstance(paths, str):
            return self.failure(tool_call, paths)
        source, destination = paths

        destination.parent.mkdir(parents=True, exist_ok=True)
        source.rename(destination)

        message = f"Renamed {self.relative(source)} to {self.relative(destination)}"
        self._debug("info", "Tools", message)
        return self.result(tool_call, result=message)


class CopyFileTool(_TransferTool):
    """Copy a file inside the workspace."""

    @property
    def name(self) -> str:
        return "copy_file"

    @property
    def description(self) -> str:
        return "Copy a file to a new location in the workspace."

    async def execute(self, tool_call: ToolCall) -> ToolEntry:
        paths = self._paths(tool_call)
        if isinstance(paths, str):
            return self.failure(tool_call, paths)
        source, destination = paths

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)

        message = f"Copied {self.relative(source)} to {self.relative(destination)}"
        self._debug("info", "Tools", message)
        return self.result(tool_call, result=message)


def create_workspace_tools(base_path: Path | None = None) -> list[BaseTool]:
    """Create the built-in file tools rooted at ``base_path``."""
    return [
        ListFilesTool(base_path),
        ReadFileTool(base_path),
        WriteFileTool(base_path),
        DeleteFileTool(base_path),
        RenameFileTool(base_path),
        CopyFileTool(base_path),
    ]

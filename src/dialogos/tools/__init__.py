from .base import BaseTool
from .file_tools import (
    CopyFileTool,
    DeleteFileTool,
    ListFilesTool,
    ReadFileTool,
    RenameFileTool,
    WorkspaceTool,
    WriteFileTool,
    create_workspace_tools,
)
from .registry import ToolCatalog

__all__ = [
    "BaseTool",
    "CopyFileTool",
    "DeleteFileTool",
    "ListFilesTool",
    "ReadFileTool",
    "RenameFileTool",
    "WorkspaceTool",
    "WriteFileTool",
    "create_workspace_tools",
    "ToolCatalog",
]

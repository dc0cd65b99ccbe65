"""
Records written to the debug export directory.

Every record is immutable once built; ``to_dict()`` renders the exact JSON
shape stored on disk.
"""

import platform
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

# Bounded representation of one call argument
ArgSummary = Union[str, int, float]


@dataclass(frozen=True)
class Snippet:
    """Window of source lines around the error line."""

    start_line: int
    end_line: int
    error_line: int
    code: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startLine": self.start_line,
            "endLine": self.end_line,
            "errorLine": self.error_line,
            "code": dict(self.code),
        }


@dataclass(frozen=True)
class StackFrame:
    """One call frame, innermost first in a trace."""

    file: Optional[str] = None
    line: Optional[int] = None
    function: Optional[str] = None
    class_name: Optional[str] = None
    call_type: Optional[str] = None
    args: List[ArgSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "function": self.function,
            "class": self.class_name,
            "type": self.call_type,
            "args": list(self.args),
        }


@dataclass(frozen=True)
class RequestInfo:
    """Snapshot of the request being served when the event was built."""

    uri: Optional[str] = None
    method: Optional[str] = None
    ip: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "method": self.method, "ip": self.ip}


@dataclass(frozen=True)
class RuntimeInfo:
    """Interpreter version and implementation name."""

    version: str
    name: str

    @classmethod
    def current(cls) -> "RuntimeInfo":
        return cls(version=platform.python_version(), name=platform.python_implementation())

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "name": self.name}


@dataclass(frozen=True)
class PreviousEvent:
    """One-level summary of the exception that caused the logged one."""

    type: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "file": self.file,
            "line": self.line,
        }


@dataclass(frozen=True)
class EventContext:
    """Variables, request and runtime details attached to an event."""

    runtime: RuntimeInfo
    variables: Optional[Any] = None
    request: Optional[RequestInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.variables is not None:
            data["variables"] = self.variables
        if self.request is not None:
            data["request"] = self.request.to_dict()
        data["runtime"] = self.runtime.to_dict()
        return data


@dataclass(frozen=True)
class LogEvent:
    """A single exported exception or log message.

    ``fingerprint`` is the text hashed into the filename: message, file and
    line for exceptions, the message alone for string events.
    """

    type: str
    message: str
    priority: str
    timestamp: str
    context: EventContext
    file: Optional[str] = None
    line: Optional[int] = None
    code: Optional[int] = None
    stack_trace: Optional[List[StackFrame]] = None
    code_snippet: Optional[Snippet] = None
    previous: Optional[PreviousEvent] = None
    fingerprint: str = ""

    @property
    def is_exception(self) -> bool:
        return self.stack_trace is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "message": self.message,
        }
        if self.is_exception:
            data["code"] = self.code
        data["file"] = self.file
        data["line"] = self.line
        data["priority"] = self.priority
        data["timestamp"] = self.timestamp
        if self.is_exception:
            data["stackTrace"] = [frame.to_dict() for frame in self.stack_trace]
        data["codeSnippet"] = self.code_snippet.to_dict() if self.code_snippet else None
        data["context"] = self.context.to_dict()
        if self.previous is not None:
            data["previous"] = self.previous.to_dict()
        return data

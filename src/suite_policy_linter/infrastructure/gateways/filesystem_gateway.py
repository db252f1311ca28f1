"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from fnmatch import fnmatch
from pathlib import Path

from suite_policy_linter.domain.errors import ParseError
from suite_policy_linter.domain.protocols import FileSystemProtocol

# never descend into these when searching a directory for suites
IGNORED_DIRECTORIES = frozenset({".git", ".hg", ".tox", ".venv", "venv", "node_modules", "vendor", "__pycache__"})


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def read_text(self, path: str) -> str:
        """Read a suite as UTF-8 text with universal newlines. Undecodable bytes raise ParseError."""
        raw = Path(path).read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            line = raw.count(b"\n", 0, exc.start) + 1
            column = exc.start - (raw.rfind(b"\n", 0, exc.start) + 1) + 1
            raise ParseError(
                f"not valid UTF-8 (byte 0x{raw[exc.start]:02x})", path, line, column
            ) from exc
        return text.replace("\r\n", "\n").replace("\r", "\n")

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def find_suites(self, path: str, patterns: list[str]) -> list[str]:
        """Get all suite files under path whose name matches one of the patterns."""
        root = Path(path)
        found: list[str] = []
        for candidate in root.rglob("*"):
            relative = candidate.relative_to(root)
            if any(part in IGNORED_DIRECTORIES for part in relative.parts[:-1]):
                continue
            if candidate.is_file() and any(fnmatch(candidate.name, p) for p in patterns):
                found.append(str(candidate))
        return sorted(found)

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file."""
        Path(path).write_text(content, encoding=encoding)

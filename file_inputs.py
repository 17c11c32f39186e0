"""
Reference-script file intake: up to 3 .txt / .md files, decoded as UTF-8.
The count check runs before any file is opened.
"""
from dataclasses import dataclass
from pathlib import Path

from config import Config

ALLOWED_EXTENSIONS = (".txt", ".md")
MAX_REFERENCE_FILES = Config.max_reference_files


class FileInputError(ValueError):
    """A reference file could not be accepted (count, type or encoding)."""


@dataclass(frozen=True)
class ReferenceFile:
    name: str
    text: str


def check_file_count(count: int) -> None:
    if count < 1:
        raise FileInputError("Select at least one script file.")
    if count > MAX_REFERENCE_FILES:
        raise FileInputError(
            f"You can analyze at most {MAX_REFERENCE_FILES} files at once ({count} selected)."
        )


def decode_reference_bytes(name: str, data: bytes) -> ReferenceFile:
    """Decode one uploaded file; only .txt / .md UTF-8 text is accepted."""
    if Path(name).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise FileInputError(f"'{name}' is not a supported file type ({', '.join(ALLOWED_EXTENSIONS)}).")
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileInputError(f"'{name}' is not valid UTF-8 text: {e.reason}") from e
    if not text.strip():
        raise FileInputError(f"'{name}' is empty.")
    return ReferenceFile(name=name, text=text)


def read_reference_files(paths: list[str | Path]) -> list[ReferenceFile]:
    """Read 1-3 reference files from disk, preserving order."""
    check_file_count(len(paths))
    files = []
    for path in paths:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileInputError(f"Could not read '{path.name}': {e}") from e
        files.append(decode_reference_bytes(path.name, data))
    return files

# src/fibengine/output_manager.py
from __future__ import annotations

import os

from fibengine.fmt import strip_ansi
from fibengine.workspace import workspace_dir


def resolve_output_path(path: str, workspace_root) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to workspace_root
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(str(workspace_root), path))


class OutputManager:
    """
    Handles all printing/output, including to screen and/or file.

    Usage:
        # Split mode (one file per index, F92.txt):
        om = OutputManager(output_file="results/", index=92)
        om.write("Hello")   # prints and buffers; file written on close()
        om.close()

        # Single file (append all runs to one file):
        om = OutputManager(output_file="results/all.txt")
        om.write("Hello")
        om.close()
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False, index: int | str | None = None):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                "." or "./"      => per-index files in the workspace
                endswith "/"     => per-index files in specified dir
                path/to/file.txt => append all runs to this file
            quiet: if True, no output to screen (only to file)
            index: Fibonacci index (or a tag such as "bench"), used for the per-index filename
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self.index = index
        self._buffer: list[str] = []

        self._mode: str = "none"     # "none" | "split" | "single"
        self._split_path: str | None = None
        self._single_path: str | None = None

        if self.output_file in (".", "./") or self.output_file.endswith("/"):
            if index is None:
                raise ValueError("An index must be provided when outputting to a directory.")
            directory = resolve_output_path(self.output_file, workspace_dir())
            os.makedirs(directory, exist_ok=True)
            self._mode = "split"
            name = f"F{index}.txt" if isinstance(index, int) else f"{index}.txt"
            self._split_path = os.path.join(directory, name)

        elif self.output_file:
            path = resolve_output_path(self.output_file, workspace_dir())
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._mode = "single"
            self._single_path = path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            print(text, end="")

        if self._mode == "single" and self._single_path:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))

    def close(self) -> None:
        """Flush buffered output to the per-index file (split mode) or add a separator (single mode)."""
        if self._mode == "split" and self._split_path and self._buffer:
            with open(self._split_path, "w", encoding="utf-8") as fh:
                fh.write(strip_ansi("".join(self._buffer)))
            return

        if self._mode == "single" and self._single_path and self._buffer:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write("\n")

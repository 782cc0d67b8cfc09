"""
generator.py — Orchestrates code generation into Go source files.

Every run regenerates its files from scratch: each output file is opened for
writing (truncated), gets the generated-file preamble, then the rendered
declarations in table order.  After a file is closed the Go formatter runs on
it; formatter problems are logged and never fail the run.
"""

import io
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from .codegen import CodeGenerator
from .grouping import resolve_groups
from .ir import DeclarationModel
from .tables import Tables
from .type_mapper import TypeMapper

logger = logging.getLogger(__name__)

ENUMS_FILE = "enums.go"
STUBS_FILE = "stubs_gen.go"
METHODS_FILE = "methods_gen.go"


def format_source(path: Path, formatter: Optional[str] = "goimports") -> bool:
    """Run `<formatter> -w path`. Returns False (after logging) on failure."""
    if not formatter:
        return True
    try:
        subprocess.run(
            [formatter, "-w", str(path)],
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        logger.warning("Failed to %s %s: %s not found", formatter, path, formatter)
        return False
    except subprocess.CalledProcessError as e:
        logger.warning("Failed to %s %s: %s", formatter, path, e.stderr.strip() or e)
        return False
    return True


class Generator:
    """Writes enums, handle wrappers and method stubs under one directory."""

    def __init__(
        self,
        model: DeclarationModel,
        tables: Tables,
        out_dir: Path,
        formatter: Optional[str] = "goimports",
    ):
        self.model = model
        self.tables = tables
        self.out_dir = Path(out_dir)
        self.formatter = formatter
        self.mapper = TypeMapper(tables)
        self.codegen = CodeGenerator(model, tables, self.mapper)

    def _open(self, filename: str):
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / filename
        out = path.open("w")
        self.codegen.emit_preamble(out)
        return path, out

    def _finish(self, path: Path, out) -> Path:
        out.close()
        format_source(path, self.formatter)
        return path

    def generate_enums(self) -> Path:
        """All mapped enums into enums.go."""
        path, out = self._open(ENUMS_FILE)
        try:
            count = self.codegen.emit_enums(out)
        finally:
            self._finish(path, out)
        logger.info("Wrote %d enum(s) to %s", count, path)
        return path

    def generate_stubs(self, split: bool = True) -> List[Path]:
        """
        Wrapper struct, constructor, getters and destructor per handle.

        With `split`, each handle gets its own <GoType>_gen.go so the TODOs
        can be worked through one type at a time.
        """
        groups = resolve_groups(self.model, self.tables, self.mapper)
        written: List[Path] = []

        if not split:
            path, out = self._open(STUBS_FILE)
            try:
                for group in groups:
                    self.codegen.emit_group(group, out)
            finally:
                written.append(self._finish(path, out))
            return written

        for group in groups:
            buf = io.StringIO()
            if not self.codegen.emit_group(group, buf):
                continue
            path, out = self._open(f"{group.go_type}_gen.go")
            try:
                out.write(buf.getvalue())
            finally:
                written.append(self._finish(path, out))
        return written

    def generate_methods(self) -> Path:
        """Empty-bodied method stubs for every receiver in the method table."""
        path, out = self._open(METHODS_FILE)
        try:
            self.codegen.emit_methods(out)
        finally:
            self._finish(path, out)
        return path

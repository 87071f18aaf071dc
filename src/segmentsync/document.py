"""Document files: segments and variables as JSON or YAML."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

from segmentsync.core.ids import generate_id
from segmentsync.core.models import VARIABLE_TYPES, Segment, Variable

YAML_SUFFIXES = (".yaml", ".yml")


class DocumentError(ValueError):
    """A document file is missing, unreadable or has the wrong shape."""


def _require_yaml():
    try:
        import yaml
    except ImportError:
        raise ImportError(
            "PyYAML is required for YAML documents. "
            "Install it with: pip install pyyaml"
        )
    return yaml


@dataclass
class Document:
    """The persisted state: an ordered segment list plus the variable set."""

    segments: List[Segment] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)

    # ── Conversion ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segments": [{"id": s.id, "content": s.content} for s in self.segments],
            "variables": [
                {"id": v.id, "name": v.name, "type": v.type, "value": v.value}
                for v in self.variables
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(
        cls,
        data: Any,
        id_factory: Callable[[], str] = generate_id,
    ) -> "Document":
        """Build a document from parsed JSON/YAML.  Missing ids are generated.

        Raises DocumentError when the top level is not a mapping, a list is
        the wrong type, or a variable has no name.
        """
        if not isinstance(data, dict):
            raise DocumentError("Document must be a mapping with 'segments' and 'variables'")

        raw_segments = data.get("segments") or []
        raw_variables = data.get("variables") or []
        if not isinstance(raw_segments, list):
            raise DocumentError("'segments' must be a list")
        if not isinstance(raw_variables, list):
            raise DocumentError("'variables' must be a list")

        segments = []
        for i, item in enumerate(raw_segments):
            if isinstance(item, str):
                item = {"content": item}
            if not isinstance(item, dict):
                raise DocumentError(f"Segment #{i + 1} must be a mapping or a string")
            segments.append(Segment(
                id=str(item.get("id") or id_factory()),
                content=str(item.get("content") or ""),
            ))

        variables = []
        for i, item in enumerate(raw_variables):
            if not isinstance(item, dict) or not item.get("name"):
                raise DocumentError(f"Variable #{i + 1} must be a mapping with a 'name'")
            vtype = str(item.get("type") or "text")
            if vtype not in VARIABLE_TYPES:
                raise DocumentError(
                    f"Variable '{item['name']}' has unknown type '{vtype}'. "
                    f"Expected one of: {', '.join(VARIABLE_TYPES)}."
                )
            value = item.get("value")
            variables.append(Variable(
                id=str(item.get("id") or id_factory()),
                name=str(item["name"]),
                type=vtype,
                value="" if value is None else str(value),
            ))

        return cls(segments=segments, variables=variables)

    @classmethod
    def from_text(cls, text: str) -> "Document":
        """A document whose segments are the lines of *text*, without variables."""
        return cls(segments=[Segment(id=generate_id(), content=line) for line in text.split("\n")])

    # ── Files ──────────────────────────────────────────────────────

    @classmethod
    def from_json(cls, path: Path) -> "Document":
        """Load a document from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise DocumentError(f"Cannot read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise DocumentError(f"Invalid JSON in {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, path: Path) -> "Document":
        """Load a document from a YAML file."""
        yaml = _require_yaml()
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise DocumentError(f"Cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise DocumentError(f"Invalid YAML in {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Path) -> "Document":
        """Load by suffix: ``.yaml``/``.yml`` as YAML, anything else as JSON."""
        path = Path(path)
        if not path.is_file():
            raise DocumentError(f"Document not found: {path}")
        if path.suffix.lower() in YAML_SUFFIXES:
            return cls.from_yaml(path)
        return cls.from_json(path)

    def save(self, path: Path) -> None:
        """Write the document, as YAML or JSON depending on the suffix."""
        path = Path(path)
        if path.suffix.lower() in YAML_SUFFIXES:
            yaml = _require_yaml()
            text = yaml.safe_dump(self.to_dict(), allow_unicode=True, sort_keys=False)
        else:
            text = self.to_json() + "\n"
        path.write_text(text, encoding="utf-8")

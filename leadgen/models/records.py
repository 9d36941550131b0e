"""
Typed views over the free-form JSON bags stored on a Lead.

Every key ever written by a pipeline revision is declared here as optional.
Readers go through from_dict() so missing keys never raise; unknown keys are
kept in `extra` and written back untouched.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


def _as_str_list(value) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _as_str(value) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


class _SparseRecord:
    """Shared dict conversion for the optional-field records."""

    _list_fields: tuple = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = dict(data or {})
        known = {}
        for f in fields(cls):
            if f.name == 'extra' or f.name not in data:
                continue
            raw = data.pop(f.name)
            known[f.name] = _as_str_list(raw) if f.name in cls._list_fields else _as_str(raw)
        return cls(**known, extra=data)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        for f in fields(self):
            if f.name == 'extra':
                continue
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        return out


@dataclass
class ScrapedData(_SparseRecord):
    """Extraction byproducts kept on lead.scraped_data."""
    title: Optional[str] = None
    description: Optional[str] = None
    headings: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    social_links: Optional[List[str]] = None
    research_summary: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _list_fields = ('tech_stack', 'social_links')


@dataclass
class AiAnalysis(_SparseRecord):
    """Structured model output kept verbatim on lead.ai_analysis."""
    company_name: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    opportunities: Optional[List[str]] = None
    email_draft: Optional[str] = None
    research_notes: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _list_fields = ('tech_stack', 'opportunities')

"""
Preassigned template data.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Union


class TemplateData:
    """
    Bindings preloaded into render frames.

    Shared data reaches every template; template data only the named ones
    and wins over shared data on key collisions.
    """

    def __init__(self):
        self._shared: Dict[str, Any] = {}
        self._templates: Dict[str, Dict[str, Any]] = {}

    def add(self, data: Mapping[str, Any], templates: Optional[Union[str, Iterable[str]]] = None) -> None:
        if templates is None:
            self._shared.update(data)
            return
        if isinstance(templates, str):
            templates = [templates]
        for name in templates:
            self._templates.setdefault(name, {}).update(data)

    def get_data(self, name: Optional[str] = None) -> Dict[str, Any]:
        if name is not None and name in self._templates:
            return {**self._shared, **self._templates[name]}
        return dict(self._shared)


__all__ = ["TemplateData"]

"""Versioned prompt templates and the chat request builder.

WHY: The instructions sent to the chat model are business logic (the gap
split rule, the JSON shape we validate against). Keeping them as YAML
template data with a version number makes every behavior change a
reviewable diff instead of an edit buried in string concatenation.

HOW: Each ``<name>.yaml`` next to this module holds ``version``,
``system`` and ``user`` keys. ``$variable`` placeholders are filled with
string.Template. Nested sections are addressed with dots, e.g.
``gap_fill.split_rules.long``. ChatRequest turns a rendered prompt into
the two-message chat-completion payload.

RULES:
- Substitution is strict: a missing variable raises KeyError
- A missing template or section raises KeyError
- Templates are cached per process; clear_cache() resets for tests
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

_PROMPTS_DIR = Path(__file__).parent
_cache: Dict[str, dict] = {}


def _load_yaml(name: str) -> dict:
    """Load and cache one template file."""
    if name not in _cache:
        yaml_path = _PROMPTS_DIR / "{}.yaml".format(name)
        if not yaml_path.is_file():
            raise KeyError("Prompt template not found: {}".format(name))
        with open(yaml_path, "r", encoding="utf-8") as f:
            _cache[name] = yaml.safe_load(f) or {}
    return _cache[name]


def _substitute(text: str, variables: Dict[str, Any]) -> str:
    if not text:
        return ""
    return string.Template(text).substitute(variables).strip()


@dataclass(frozen=True)
class RenderedPrompt:
    """A template after variable substitution."""

    name: str
    version: int
    system: str = ""
    user: str = ""
    text: str = ""


def load_prompt(name: str, **variables: Any) -> RenderedPrompt:
    """Load and render a prompt template.

    Args:
        name: ``"file_name"`` or ``"file_name.section.subsection"``.
        **variables: Values for the template's ``$variable`` placeholders.

    Returns:
        RenderedPrompt. A section that is a plain string is returned in
        ``text``; a mapping section fills ``system``/``user``.
    """
    file_name, _, section_path = name.partition(".")
    root = _load_yaml(file_name)
    version = int(root.get("version", 0))

    data: Any = root
    if section_path:
        for key in section_path.split("."):
            if isinstance(data, dict) and key in data:
                data = data[key]
            else:
                raise KeyError(
                    "Section '{}' not found in template '{}'".format(section_path, file_name)
                )

    if not isinstance(data, dict):
        return RenderedPrompt(
            name=name, version=version, text=_substitute(str(data), variables)
        )

    return RenderedPrompt(
        name=name,
        version=version,
        system=_substitute(data.get("system", ""), variables),
        user=_substitute(data.get("user", ""), variables),
    )


def clear_cache() -> None:
    """Drop cached templates (tests, hot reload)."""
    _cache.clear()


@dataclass(frozen=True)
class ChatRequest:
    """Typed chat-completion request: model, rendered prompt, sampling options.

    RULES:
    - Always exactly two messages: system then user
    - prompt_id ("name@vN") is for logging; it is not sent upstream
    """

    model: str
    system: str
    user: str
    temperature: Optional[float] = None
    prompt_id: str = ""

    @classmethod
    def from_prompt(
        cls,
        model: str,
        prompt: RenderedPrompt,
        temperature: Optional[float] = None,
    ) -> ChatRequest:
        return cls(
            model=model,
            system=prompt.system,
            user=prompt.user,
            temperature=temperature,
            prompt_id="{}@v{}".format(prompt.name, prompt.version),
        )

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "messages": self.messages()}
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload

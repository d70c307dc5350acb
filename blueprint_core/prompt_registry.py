"""Prompt files for blueprint generation.

Each stage is a `<stage>.txt` file under `blueprint_core/prompts/`. Files are
read once per registry and cached; placeholders written as `<name>` are filled
by `render`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


class PromptRegistry:
    def __init__(self, prompts_dir: Optional[Union[str, Path]] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir is not None else PROMPTS_DIR
        self._cache: Dict[str, str] = {}

    def stages(self) -> List[str]:
        """Stage names available on disk, sorted."""
        return sorted(p.stem for p in self.prompts_dir.glob("*.txt"))

    def get_prompt(self, stage: str) -> str:
        """Return the stripped prompt text for a stage.

        Raises:
            FileNotFoundError: no `<stage>.txt` in the prompts directory.
        """
        cached = self._cache.get(stage)
        if cached is not None:
            return cached

        path = self.prompts_dir / f"{stage}.txt"
        if not path.is_file():
            raise FileNotFoundError(f"Prompt file not found: {path} (known stages: {', '.join(self.stages()) or 'none'})")

        text = path.read_text(encoding="utf-8").strip()
        self._cache[stage] = text
        return text

    def render(self, stage: str, **values: str) -> str:
        """Prompt text with every `<key>` placeholder replaced by its value."""
        text = self.get_prompt(stage)
        for key, value in values.items():
            text = text.replace(f"<{key}>", str(value))
        return text

    def clear_cache(self) -> None:
        self._cache.clear()


_global_registry: Optional[PromptRegistry] = None


def get_prompt_registry() -> PromptRegistry:
    global _global_registry
    if _global_registry is None:
        _global_registry = PromptRegistry()
    return _global_registry


def get_prompt(stage: str) -> str:
    return get_prompt_registry().get_prompt(stage)

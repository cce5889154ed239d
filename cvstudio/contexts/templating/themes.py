"""
Theme palettes.

Loads named color palettes from themes.yaml and resolves a theme name to a
palette, falling back to DEFAULT_THEME for unknown names.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from cvstudio.contexts.templating.logger import log_theme_fallback

load_dotenv()
THEMES_PATH = Path(os.getenv("THEMES_PATH", Path(__file__).parent / "themes.yaml"))
DEFAULT_THEME = os.getenv("DEFAULT_THEME", "blue")


@dataclass(frozen=True)
class ThemePalette:
    name: str
    primary: str
    secondary: str
    accent: str

    def to_dict(self) -> Dict[str, str]:
        return {"primary": self.primary, "secondary": self.secondary, "accent": self.accent}

    def to_css(self) -> str:
        """CSS custom properties consumed by template stylesheets."""
        return (
            ":root {\n"
            f"  --primary: {self.primary};\n"
            f"  --secondary: {self.secondary};\n"
            f"  --accent: {self.accent};\n"
            "}"
        )


@lru_cache(maxsize=None)
def load_themes(themes_path: Path = None) -> Dict[str, ThemePalette]:
    """
    Load every palette from the themes file.

    Args:
        themes_path: YAML file of {name: {primary, secondary, accent}}
                     (defaults to THEMES_PATH)

    Returns:
        Palettes keyed by lower-case theme name
    """
    if themes_path is None:
        themes_path = THEMES_PATH

    raw = OmegaConf.to_container(OmegaConf.load(themes_path), resolve=True)
    return {
        str(name).lower(): ThemePalette(
            name=str(name).lower(),
            primary=colors["primary"],
            secondary=colors["secondary"],
            accent=colors["accent"],
        )
        for name, colors in raw.items()
    }


def resolve_theme(name: Optional[str], themes_path: Path = None) -> ThemePalette:
    """
    Resolve a theme name to its palette.

    Unknown names fall back to DEFAULT_THEME rather than failing; a missing
    name resolves to DEFAULT_THEME silently.
    """
    themes = load_themes(themes_path)
    if name and name.lower() in themes:
        return themes[name.lower()]
    if name:
        log_theme_fallback(name, DEFAULT_THEME)
    return themes[DEFAULT_THEME]


def list_themes(themes_path: Path = None) -> list:
    return list(load_themes(themes_path))

"""Colour themes for coverage plots."""

from __future__ import annotations

from dataclasses import dataclass

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class ColorTheme:
    """Colours used by a plot."""

    primary: RGB
    accent: RGB
    high: RGB
    low: RGB
    base: RGB
    overlay: RGB
    text: RGB


CATPPUCCIN_LATTE = ColorTheme(
    primary=(30, 102, 245),
    accent=(136, 57, 239),
    high=(234, 83, 83),
    low=(64, 160, 43),
    base=(239, 241, 245),
    overlay=(220, 224, 232),
    text=(76, 79, 105),
)

CATPPUCCIN_FRAPPE = ColorTheme(
    primary=(140, 170, 238),
    accent=(186, 187, 241),
    high=(231, 130, 132),
    low=(166, 209, 137),
    base=(48, 52, 70),
    overlay=(65, 69, 89),
    text=(198, 208, 245),
)

NORD = ColorTheme(
    primary=(94, 129, 172),
    accent=(180, 142, 173),
    high=(191, 97, 106),
    low=(163, 190, 140),
    base=(236, 239, 244),
    overlay=(229, 233, 240),
    text=(46, 52, 64),
)

GRUVBOX_LIGHT = ColorTheme(
    primary=(69, 133, 136),
    accent=(177, 98, 134),
    high=(204, 36, 29),
    low=(152, 151, 26),
    base=(251, 241, 199),
    overlay=(235, 219, 178),
    text=(60, 56, 54),
)

_BY_NAME = {
    "latte": CATPPUCCIN_LATTE,
    "frappe": CATPPUCCIN_FRAPPE,
    "nord": NORD,
    "gruvbox": GRUVBOX_LIGHT,
}


def theme_by_name(name: str) -> ColorTheme:
    """Return the theme called *name* (case-insensitive); unknown names give Latte."""
    return _BY_NAME.get(name.lower(), CATPPUCCIN_LATTE)
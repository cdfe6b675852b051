"""Design configuration: palette, fonts and cover layout."""

from typing import Optional, Dict, Any, Literal
from pydantic import BaseModel, Field

from proposal_studio.core.config import get_settings


class ColorPalette(BaseModel):
    """Brand palette. Unset entries fall back to branding, then defaults."""
    primary: Optional[str] = None
    secondary: Optional[str] = None
    accent: Optional[str] = None
    success: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    background: Optional[str] = None
    surface: Optional[str] = None
    text: Optional[str] = None


class FontPairing(BaseModel):
    """Heading and body fonts with an optional stylesheet URL."""
    heading_family: Optional[str] = Field(None, alias="headingFamily")
    body_family: Optional[str] = Field(None, alias="bodyFamily")
    heading_weight: int = Field(700, alias="headingWeight")
    body_weight: int = Field(400, alias="bodyWeight")
    source_url: Optional[str] = Field(None, alias="sourceUrl")

    class Config:
        populate_by_name = True


class CoverZone(BaseModel):
    """Rectangle on the cover page, every value a percentage of the page."""
    x: float = Field(..., ge=0, le=100)
    y: float = Field(..., ge=0, le=100)
    width: float = Field(..., gt=0, le=100)
    height: float = Field(..., gt=0, le=100)
    alignment: Literal["left", "center", "right"] = "center"
    vertical_align: Literal["top", "middle", "bottom"] = Field("middle", alias="verticalAlign")

    class Config:
        populate_by_name = True


class CoverLayout(BaseModel):
    """Positions of the cover page elements."""
    logo: CoverZone = CoverZone(x=40, y=8, width=20, height=12)
    title: CoverZone = CoverZone(x=10, y=35, width=80, height=15)
    subtitle: CoverZone = CoverZone(x=10, y=52, width=80, height=8)
    client_logo: CoverZone = Field(
        CoverZone(x=70, y=78, width=20, height=10, alignment="right"),
        alias="clientLogo",
    )
    date: CoverZone = CoverZone(x=10, y=88, width=80, height=5)

    class Config:
        populate_by_name = True


class ProposalDesign(BaseModel):
    """Per-proposal design configuration stored in design_metadata."""
    colors: ColorPalette = Field(default_factory=ColorPalette)
    fonts: FontPairing = Field(default_factory=FontPairing)
    cover_zones: CoverLayout = Field(default_factory=CoverLayout, alias="coverZones")

    class Config:
        populate_by_name = True
        extra = "allow"


# CSS custom property -> (palette attribute, branding key, settings default)
_COLOR_VARIABLES = [
    ("--primary-color", "primary", "primaryColor", "DEFAULT_PRIMARY_COLOR"),
    ("--secondary-color", "secondary", "secondaryColor", "DEFAULT_SECONDARY_COLOR"),
    ("--accent-color", "accent", "accentColor", "DEFAULT_ACCENT_COLOR"),
    ("--success-color", "success", "successColor", "DEFAULT_SUCCESS_COLOR"),
    ("--warning-color", "warning", "warningColor", "DEFAULT_WARNING_COLOR"),
    ("--error-color", "error", "errorColor", "DEFAULT_ERROR_COLOR"),
    ("--background-color", "background", "backgroundColor", "DEFAULT_BACKGROUND_COLOR"),
    ("--surface-color", "surface", "surfaceColor", "DEFAULT_SURFACE_COLOR"),
    ("--text-color", "text", "textColor", "DEFAULT_TEXT_COLOR"),
]


def css_variables(
    branding: Optional[Dict[str, Any]],
    design: Optional[ProposalDesign] = None
) -> Dict[str, str]:
    """
    Resolve the CSS custom properties applied to a rendered proposal.

    Design values win over branding values, which win over the configured
    defaults.

    Args:
        branding: Free-form branding dict stored on the proposal
        design: Parsed design configuration, if one was saved

    Returns:
        Mapping of CSS variable name to value
    """
    settings = get_settings()
    branding = branding or {}
    colors = design.colors if design else ColorPalette()
    fonts = design.fonts if design else FontPairing()

    variables = {}
    for variable, attribute, branding_key, default_key in _COLOR_VARIABLES:
        variables[variable] = (
            getattr(colors, attribute)
            or branding.get(branding_key)
            or getattr(settings, default_key)
        )

    body_font = fonts.body_family or branding.get("fontFamily") or settings.DEFAULT_BODY_FONT
    heading_font = fonts.heading_family or branding.get("headingFont") or settings.DEFAULT_HEADING_FONT
    variables["--font-family"] = f"'{body_font}', sans-serif"
    variables["--heading-font"] = f"'{heading_font}', sans-serif"
    variables["--heading-weight"] = str(fonts.heading_weight)
    variables["--body-weight"] = str(fonts.body_weight)
    return variables

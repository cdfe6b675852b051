"""Callout boxes: category to icon and color lookup."""

from typing import Dict

import markdown
from jinja2 import Template
from markupsafe import Markup

from proposal_studio.models import CalloutCategory, CalloutVisualization, classify_callout

# category -> icon, accent (border and icon), background, title color
CALLOUT_STYLES: Dict[CalloutCategory, Dict[str, str]] = {
    CalloutCategory.INFO: {"icon": "ℹ️", "accent": "#3b82f6", "background": "#eff6ff", "title": "#1e3a8a"},
    CalloutCategory.SUCCESS: {"icon": "✅", "accent": "#22c55e", "background": "#f0fdf4", "title": "#14532d"},
    CalloutCategory.BENEFIT: {"icon": "✔️", "accent": "#10b981", "background": "#ecfdf5", "title": "#064e3b"},
    CalloutCategory.WARNING: {"icon": "⚠️", "accent": "#eab308", "background": "#fefce8", "title": "#713f12"},
    CalloutCategory.RISK: {"icon": "🛡️", "accent": "#ef4444", "background": "#fef2f2", "title": "#7f1d1d"},
    CalloutCategory.TIP: {"icon": "💡", "accent": "#a855f7", "background": "#faf5ff", "title": "#581c87"},
    CalloutCategory.INSIGHT: {"icon": "💡", "accent": "#6366f1", "background": "#eef2ff", "title": "#312e81"},
    CalloutCategory.COST: {"icon": "💰", "accent": "#16a34a", "background": "#f0fdf4", "title": "#14532d"},
    CalloutCategory.RECOMMENDATION: {"icon": "🎯", "accent": "#f97316", "background": "#fff7ed", "title": "#7c2d12"},
    CalloutCategory.NOTE: {"icon": "📝", "accent": "#6b7280", "background": "#f9fafb", "title": "#111827"},
}

CALLOUT_TEMPLATE = Template("""
<aside class="callout callout-{{ category }}" style="margin: 1.5rem 0; padding: 1rem; border-left: 4px solid {{ style.accent }}; background-color: {{ style.background }}; border-radius: 0 0.5rem 0.5rem 0;">
  <div style="display: flex; gap: 0.75rem; align-items: flex-start;">
    <span class="callout-icon emoji-protect" style="color: {{ style.accent }}; font-size: 1.25rem; line-height: 1;">{{ style.icon }}</span>
    <div style="flex: 1;">
      <p style="font-weight: 600; font-size: 0.9rem; margin: 0 0 0.25rem 0; color: {{ style.title }};">{{ title }}</p>
      <div class="callout-body" style="font-size: 0.9rem; color: #374151;">{{ body }}</div>
    </div>
  </div>
  {% if caption %}<p style="margin: 0.5rem 0 0 0; font-size: 0.8rem; color: #6b7280; font-style: italic;">{{ caption }}</p>{% endif %}
</aside>
""", autoescape=True)


def callout_style(category: CalloutCategory) -> Dict[str, str]:
    return CALLOUT_STYLES.get(CalloutCategory(category), CALLOUT_STYLES[CalloutCategory.NOTE])


def default_title(category: CalloutCategory) -> str:
    return CalloutCategory(category).value.capitalize()


class CalloutRenderer:
    """Renders callout visualizations; the body is markdown."""

    def render_html(self, callout: CalloutVisualization) -> Markup:
        category = callout.callout_type
        # raw HTML in the body is escaped before markdown runs
        body = markdown.markdown(str(Markup.escape(callout.content)), extensions=["sane_lists"])
        return Markup(CALLOUT_TEMPLATE.render(
            category=category.value,
            style=callout_style(category),
            title=callout.title or default_title(category),
            body=Markup(body),
            caption=callout.caption,
        ))


__all__ = ["CalloutRenderer", "CALLOUT_STYLES", "callout_style", "classify_callout", "default_title"]

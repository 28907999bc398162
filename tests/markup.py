"""
Markup builders for menu pages in the reference site's shape.
"""


def card(name: str = "", *, price: str = "", description: str = "", extra: str = "", name_tag: str = "h3") -> str:
    """Markup for one menu card."""
    parts = ['<div data-testid="card">']
    if name:
        parts.append(f"<{name_tag}>{name}</{name_tag}>")
    if description:
        parts.append(f'<p class="styles_description__x1Y2z">{description}</p>')
    if price:
        parts.append(f'<span data-testid="card-item-price">{price}</span>')
    if extra:
        parts.append(extra)
    parts.append("</div>")
    return "".join(parts)


def page(*blocks: str) -> str:
    return "<html><head><title>Menu</title></head><body>" + "".join(blocks) + "</body></html>"

from urllib.parse import quote

# Characters encodeURIComponent leaves untouched
URI_COMPONENT_SAFE = "-_.!~*'()"


def default_collection_image(name):
    """
    Placeholder image for a collection without one: an 80x80 SVG tile in a
    colour derived from the first character, showing that letter.
    """
    name = name or '?'
    first_letter = name[0].upper()
    color = f"#{(ord(name[0]) * 1234567) % 0xFFFFFF:06x}"
    svg = (
        "<svg xmlns='http://www.w3.org/2000/svg' width='80' height='80'>"
        f"<rect width='100%' height='100%' fill='{color}'/>"
        "<text x='50%' y='55%' font-size='32' font-family='Arial' fill='white' "
        f"text-anchor='middle' dominant-baseline='middle'>{first_letter}</text></svg>"
    )
    return f"data:image/svg+xml;charset=utf-8,{quote(svg, safe=URI_COMPONENT_SAFE)}"


def parse_tags(value):
    """Accept a list or a comma separated string of tags"""
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(',') if tag.strip()]
    return [str(tag).strip() for tag in value if str(tag).strip()]

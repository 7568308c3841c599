from django import template

register = template.Library()


@register.filter
def get_item(mapping, key):
    """Lookup en dict desde el template ({{ model.colors|get_item:calendar.id }})."""
    if not mapping:
        return None
    return mapping.get(key)

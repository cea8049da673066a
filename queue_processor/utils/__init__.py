# Location: queue_processor/utils/__init__.py
# validation is imported from its module directly, it depends on models

from .time_utils import (
    utc_now,
    format_datetime,
    parse_datetime,
    has_elapsed
)

from .template_utils import (
    fill_placeholders,
    render_template
)

__all__ = [
    'utc_now',
    'format_datetime',
    'parse_datetime',
    'has_elapsed',
    'fill_placeholders',
    'render_template'
]

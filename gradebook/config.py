"""
Configuration settings for the gradebook app.

These values can be overridden in Django settings by prefixing with GRADEBOOK_.
For example, to change the label shown for unmatched percentages:
    GRADEBOOK_UNRESOLVED_GRADE = '-'

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a gradebook setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'GRADEBOOK_{name}', default)


_DEFAULTS = {
    # Grade shown when no tier covers a percentage
    'UNRESOLVED_GRADE': 'N/A',
    # Grade shown for a subject with no recorded mark
    'UNGRADED_LABEL': '—',

    # Export settings
    'EXCEL_HEADER_COLOR': '4F46E5',

    # Student provisioning
    'TEMP_PASSWORD_LENGTH': 12,
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    This avoids Django setup issues during module import.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(config, name)

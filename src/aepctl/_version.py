"""
Version information for the aepctl package.

This file is the single source of truth for the package version.
It is read by pyproject.toml and can be updated programmatically
during the build process.
"""

__version__ = "0.5.0"

def _parse_version(version_string):
    """Parse version string, handling development versions gracefully."""
    if version_string.startswith('dev-') or version_string == 'dev':
        return (0, 0, 0, 'dev')

    # Handle semantic versions (e.g., "1.2.3", "1.2.3a1", "1.2.3.dev0")
    try:
        numeric_parts = []
        for part in version_string.split('.'):
            # "3a1" -> "3"
            digits = ''
            for char in part:
                if not char.isdigit():
                    break
                digits += char
            if not digits:
                break
            numeric_parts.append(int(digits))

        while len(numeric_parts) < 3:
            numeric_parts.append(0)

        return tuple(numeric_parts[:3])

    except (ValueError, AttributeError):
        return (0, 0, 0)

__version_info__ = _parse_version(__version__)

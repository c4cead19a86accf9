"""
Utilities for string interpolation using environment variables and build arguments.
"""
import re
from typing import Dict

# Groups 1-3: ${VAR} name, optional :- / :+ modifier and its value
# Group 4: bare $VAR name
_PATTERN = re.compile(
    r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::(-|\+)([^}]*))?\}|\$([A-Za-z_][A-Za-z0-9_]*)'
)


class EnvironmentInterpolator:
    """
    Utility for interpolating variables in strings.
    Supports ${VAR}, $VAR, ${VAR:-default} and ${VAR:+value}.
    """
    @staticmethod
    def interpolate(template: str, context: Dict[str, str], strict: bool = True, bare: bool = True) -> str:
        """
        Interpolates variables in the template string using the provided context.

        :param template: The string containing ${VAR} or $VAR placeholders.
        :param context: The variables to substitute.
        :param strict: Raise on unknown variables instead of leaving them untouched.
        :param bare: Also expand $VAR; when False only the braced forms are touched.
        :return: The interpolated string.
        :raises KeyError: If strict and a variable is not found and no default is provided.
        """
        def replace(match):
            if match.group(4) and not bare:
                return match.group(0)
            var_name = match.group(1) or match.group(4)
            modifier = match.group(2)
            alt_value = match.group(3)

            value = context.get(var_name)

            if modifier == '-':
                return value if value else alt_value
            if modifier == '+':
                return alt_value if value else ''
            if value is not None:
                return value
            if strict:
                raise KeyError(f"Variable {var_name} not found in context")
            return match.group(0)

        return _PATTERN.sub(replace, template)

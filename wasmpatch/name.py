import re


__all__ = (
    'is_js_identifier',
    'is_module_base_name',
    'is_scoped',
    'validate_package_name',
)


_PACKAGE_NAME = re.compile(
    r'^(?:@(?P<scope>[a-z0-9~-][a-z0-9._~-]*)/)?[a-z0-9~-][a-z0-9._~-]*$')
_JS_IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')
_MAX_PACKAGE_NAME_LENGTH = 214


def validate_package_name(name: str) -> 'None | str':
    """
    Check the npm package name. This function returns None for a valid name
    and a description of the problem otherwise.
    """
    if not name:
        return 'package name is empty'
    if len(name) > _MAX_PACKAGE_NAME_LENGTH:
        return f'package name is longer than {_MAX_PACKAGE_NAME_LENGTH} characters'
    if name != name.lower():
        return 'package name contains uppercase letters'
    if name.startswith(('.', '_')):
        return 'package name starts with a period or underscore'
    if _PACKAGE_NAME.match(name) is None:
        return 'package name contains characters that are not URL-safe'
    return None


def is_scoped(name: str) -> bool:
    match = _PACKAGE_NAME.match(name)
    return match is not None and match.group('scope') is not None


def is_module_base_name(name: str) -> bool:
    return (
        bool(name)
        and name not in ('.', '..')
        and '/' not in name
        and '\\' not in name
    )


def is_js_identifier(name: str) -> bool:
    return _JS_IDENTIFIER.match(name) is not None

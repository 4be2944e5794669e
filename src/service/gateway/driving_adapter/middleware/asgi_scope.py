from typing import Optional

from starlette.types import Scope


def header_value(scope: Scope, name: str) -> Optional[str]:
    target = name.lower().encode('latin-1')
    for key, value in scope.get('headers', []):
        if key.lower() == target:
            return value.decode('latin-1')
    return None


def client_host(scope: Scope) -> Optional[str]:
    client = scope.get('client')
    return client[0] if client else None

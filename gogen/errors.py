"""Generation-time errors"""

from typing import Optional


class GenerationError(Exception):
    """A declaration cannot be turned into Go code"""

    def __init__(self, message: str, declaration: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.declaration = declaration

    def __str__(self):
        if self.declaration:
            return f"{self.declaration}: {self.message}"
        return self.message


class InvalidKeyType(GenerationError):
    """Container type used as a map key or set element"""

    def __init__(self, type_name: str):
        super().__init__(f"cannot produce a valid Go map key type from {type_name}")
        self.type_name = type_name


class NoLiteralForType(GenerationError):
    """Constant value that has no literal form for its type"""


class InvalidType(GenerationError):
    """Type that has no Go representation in the given position"""


class ConfigError(GenerationError):
    """Malformed generator options"""


class LoadError(GenerationError):
    """Malformed or unresolvable program document"""
